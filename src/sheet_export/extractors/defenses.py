"""Defensive bonus breakdown and tactical (dodge/block) table."""

from typing import Any, List, Optional

from ..formatting import format_bonus
from ..models import ArmorPiece, ArmorSummary, DefensesSection, ExportOptions, SectionKey, TacticalRow
from ..source import as_list, as_number, dig, first_present
from .base import ExtractionContext, ensure_context, section_guard

PASSIVE = "passive"
TACTICAL_MODES = (("Passive", PASSIVE), ("Partial", "partial"), ("Full", "full"))
ARMOR_LOCATIONS = ("Head", "Torso", "Arms", "Legs")


def mode_modifier(options: Any, mode: str) -> float:
    """Modifier of the {value, modifier} entry for mode, 0 if absent."""
    for option in as_list(options):
        if dig(option, "value") == mode:
            return as_number(dig(option, "modifier"))
    return 0


def tactical_rows(
    base_total: float,
    shield_bonus: float,
    dodge_options: Any,
    block_options: Any
) -> List[TacticalRow]:
    """
    Dodge and block totals for each defensive mode.

    Active modes (partial, full) also receive the passive modifier of the
    other defense style: dodging still benefits from a passively held shield,
    and blocking from passive dodging.
    """
    passive_dodge = mode_modifier(dodge_options, PASSIVE)
    passive_block = mode_modifier(block_options, PASSIVE)

    rows = []
    for label, mode in TACTICAL_MODES:
        total_dodge = base_total + mode_modifier(dodge_options, mode)
        total_block = base_total + mode_modifier(block_options, mode) + shield_bonus

        if mode != PASSIVE:
            total_dodge += passive_block
            total_block += passive_dodge

        rows.append(TacticalRow(
            mode=label,
            dodge=format_bonus(total_dodge),
            block=format_bonus(total_block),
        ))
    return rows


def _armor_piece(armor_worn: Any, location: str) -> ArmorPiece:
    part = dig(armor_worn, location)
    if not part:
        return ArmorPiece()
    return ArmorPiece(
        name=first_present(part, [("piece", "_base", "material"), ("piece", "name")], "Unknown"),
        at=as_number(dig(part, "AT")),
    )


def extract_defenses(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[DefensesSection]:
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.DEFENSES, context):
        return None

    system = dig(actor, "system")
    db_block = dig(system, "_dbBlock")

    quickness_db = as_number(dig(db_block, "quicknessDB"))
    armor_db = as_number(dig(db_block, "armorDB"))
    other_db = as_number(dig(system, "defense", "other"))
    shield_bonus = as_number(dig(system, "defenses", "shield", "bonus"))
    base_total = quickness_db + armor_db + other_db

    # The live options are lazy on the token; fall back to the snapshots the
    # orchestrator took right after derivation
    dodge_options = first_present(db_block, [("dodgeOptions",), lambda: context.dodge_options], [])
    block_options = first_present(db_block, [("blockOptions",), lambda: context.block_options], [])

    armor_worn = dig(system, "_armorWorn")
    armor = ArmorSummary(**{
        location.lower(): _armor_piece(armor_worn, location) for location in ARMOR_LOCATIONS
    })

    return DefensesSection(
        quickness_bonus=format_bonus(quickness_db),
        armor_db=format_bonus(armor_db),
        other_db=format_bonus(other_db),
        shield_bonus=format_bonus(shield_bonus),
        total_db_current=format_bonus(as_number(dig(db_block, "totalDB"))),
        tactical=tactical_rows(base_total, shield_bonus, dodge_options, block_options),
        armor=armor,
    )
