"""Quick-info block: movement, initiative, hits, endurance, power."""

from typing import Any, Optional

from ..formatting import format_bonus
from ..models import ExportOptions, Pool, QuickInfoSection, SectionKey
from ..source import as_list, as_number, dig, first_present
from ..units import DistanceContext, distance_to_display
from .base import ExtractionContext, ensure_context, section_guard

DEFAULT_MOVEMENT_MODE = "Running"
BASE_PACE = "Walk"


def base_movement_rate(system: Any, mode: str) -> Any:
    """Feet per round of the Walk pace in the active movement mode's rate table."""
    pace_rates = dig(system, "_movementBlock", "_table", mode, "paceRates")
    for entry in as_list(pace_rates):
        pace = first_present(entry, [("pace", "value"), ("pace",)])
        if pace == BASE_PACE:
            return dig(entry, "perRound") or 0
    return 0


def _pool(system: Any, name: str) -> Pool:
    return Pool(
        current=as_number(dig(system, "health", name, "value")),
        max=as_number(dig(system, "health", name, "max")),
    )


def extract_quick_info(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[QuickInfoSection]:
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.QUICK_INFO, context):
        return None

    system = dig(actor, "system")
    mode = dig(system, "activeMovementName") or DEFAULT_MOVEMENT_MODE
    bmr = base_movement_rate(system, mode)

    injury = dig(system, "_injuryBlock")
    return QuickInfoSection(
        bmr_value=f"{distance_to_display(bmr, options.measurement_system, DistanceContext.MOVEMENT)}/rd",
        bmr_mode=str(mode),
        initiative=format_bonus(as_number(dig(system, "_totalInitiativeBonus"))),
        hits=_pool(system, "hp"),
        endurance_physical=format_bonus(as_number(dig(injury, "_endurance", "_bonusWithRacial"))),
        endurance_mental=format_bonus(as_number(dig(injury, "_concentration", "_bonusWithRacial"))),
        power=_pool(system, "power"),
    )
