"""Carried equipment, encumbrance and maximum pace."""

from typing import Any, Optional

from ..formatting import format_bonus, resolve_label
from ..models import ExportOptions, InventoryItem, InventorySection, SectionKey
from ..source import as_list, as_number, dig, first_present, first_truthy
from ..units import weight_to_display
from .base import ExtractionContext, ensure_context, section_guard

DEFAULT_MAX_PACE = "Dash"


def _inventory_item(entry: Any, options: ExportOptions) -> InventoryItem:
    weight = first_truthy(entry, [("system", "weight"), ("system", "_weight", "weight")], 0)
    return InventoryItem(
        name=str(first_truthy(entry, [("item", "name"), ("name",), ("system", "name")], "Unknown")),
        qty=as_number(dig(entry, "system", "quantity"), 0) or 1,
        weight=weight_to_display(weight, options.measurement_system),
    )


def max_pace_label(system: Any, context: ExtractionContext) -> str:
    label_key = dig(system, "_movementBlock", "maxPaceForLoadLabel")
    if label_key:
        return resolve_label(context.localizer, label_key, label_key)
    return str(dig(system, "encumbrance", "pace") or DEFAULT_MAX_PACE)


def _total_weight(system: Any, *path: str) -> float:
    return round(as_number(dig(system, *path, "weight")), 2)


def extract_inventory(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[InventorySection]:
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.INVENTORY, context):
        return None

    system = dig(actor, "system")
    units = options.measurement_system
    return InventorySection(
        weight_allowance=weight_to_display(_total_weight(system, "_loadAllowed"), units),
        weight_carried=weight_to_display(_total_weight(system, "_carriedWeight"), units),
        enc_penalty=format_bonus(as_number(first_present(system, [
            ("_encManeuverPenalty",),
            ("encumbrance", "maneuverPenalty"),
        ]))),
        max_pace=max_pace_label(system, context),
        items=[_inventory_item(entry, options) for entry in as_list(dig(system, "_inventory"))],
    )
