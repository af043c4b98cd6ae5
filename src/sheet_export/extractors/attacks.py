"""Attack table rows."""

from typing import Any, List, Optional, Tuple

from ..formatting import format_bonus, probe_label, slugify_key
from ..localization import Localizer
from ..models import AttackRow, ExportOptions, SectionKey
from ..source import as_list, as_number, dig, first_present, first_truthy
from ..units import DistanceContext, MeasurementSystem, distance_to_display
from .base import ExtractionContext, ensure_context, section_guard


def attack_label(localizer: Optional[Localizer], raw: Any, default: str = "Unknown") -> str:
    """Resolve a weapon, table or specialization name: table key, attack key, raw."""
    if not raw:
        return default
    slug = slugify_key(raw)
    return probe_label(localizer, (f"RMU.AttackTable.{slug}", f"RMU.Attack.{slug}"), raw)


def reach_and_range(attack: Any, system: MeasurementSystem) -> Tuple[str, str]:
    """
    Display strings for (reach, range); at most one of them is non-empty.

    Ranged attacks show their short range and suppress melee reach.
    """
    short_range = dig(attack, "usage", "range", "short")
    if dig(attack, "isRanged") and short_range:
        return "", distance_to_display(short_range, system, DistanceContext.RANGE)

    melee_range = dig(attack, "meleeRange")
    if melee_range:
        return distance_to_display(melee_range, system, DistanceContext.REACH), ""
    return "", ""


def extract_attacks(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[List[AttackRow]]:
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.ATTACKS, context):
        return None

    rows = []
    for attack in as_list(dig(actor, "system", "_attacks")):
        reach, attack_range = reach_and_range(attack, options.measurement_system)
        chart = first_truthy(attack, [("chart", "name"), ("chart",), ("attackTable",)])
        rows.append(AttackRow(
            name=attack_label(context.localizer, dig(attack, "attackName"), "Unknown Weapon"),
            specialization=attack_label(context.localizer, dig(attack, "specialization")),
            handed=str(dig(attack, "handed") or ""),
            ob=format_bonus(as_number(first_present(attack, [("totalBonus",), ("ob",)]))),
            damage_type=attack_label(context.localizer, chart if isinstance(chart, str) else None),
            fumble=as_number(dig(attack, "fumble")),
            reach=reach,
            range=attack_range,
        ))
    return rows
