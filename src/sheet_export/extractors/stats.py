"""Stat bonuses and resistance rolls."""

from typing import Any, List, Optional

from ..formatting import format_bonus, resolve_label
from ..models import ExportOptions, ResistanceRow, SectionKey, StatRow
from ..source import as_list, as_number, dig, first_present
from .base import ExtractionContext, ensure_context, section_guard

STAT_KEYS = ("Ag", "Co", "Em", "In", "Me", "Pr", "Qu", "Re", "SD", "St")

RESISTANCE_NAMES = ("Channeling", "Essence", "Mentalism", "Physical", "Fear")

# Where the resistance list has lived across RMU releases, newest first
RESISTANCE_PATHS = (
    ("_resistanceBlock", "_resistances"),
    ("_resistanceBlock", "resistances"),
    ("resistanceBlock", "_resistances"),
    ("resistanceBlock", "resistances"),
    ("_resistances",),
    ("resistances",),
)


def extract_stats(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[List[StatRow]]:
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.STATS, context):
        return None

    stat_block = dig(actor, "system", "_statBlock")
    rows = []
    for key in STAT_KEYS:
        data = dig(stat_block, key)
        if not data:
            continue
        rows.append(StatRow(
            key=key,
            label=resolve_label(context.localizer, f"RMU.Stat.{key}", key),
            bonus=format_bonus(as_number(dig(data, "total"))),
            temporary=as_number(dig(data, "temp"), None),
            potential=as_number(dig(data, "potential"), None),
        ))
    return rows


def resistance_list(system: Any) -> List[Any]:
    return as_list(first_present(system, RESISTANCE_PATHS, []))


def _find_resistance(entries: List[Any], name: str) -> Any:
    needle = name.lower()
    for entry in entries:
        entry_name = dig(entry, "name")
        if isinstance(entry_name, str) and needle in entry_name.lower():
            return as_number(first_present(entry, [("total",), ("bonus",)]))
    return 0


def extract_resistances(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[List[ResistanceRow]]:
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.RESISTANCES, context):
        return None

    entries = resistance_list(dig(actor, "system"))
    return [
        ResistanceRow(
            label=resolve_label(context.localizer, f"RMU.Resistance.{name}", name),
            bonus=format_bonus(_find_resistance(entries, name)),
        )
        for name in RESISTANCE_NAMES
    ]
