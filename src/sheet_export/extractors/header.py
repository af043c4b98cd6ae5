"""Header (identity) and details/biography sections."""

from typing import Any, Optional

from bs4 import BeautifulSoup

from ..models import DetailsSection, ExportOptions, HeaderSection, SectionKey
from ..source import as_number, dig, find_items, first_present, first_truthy
from ..units import height_to_display, weight_to_display
from .base import ExtractionContext, ensure_context, section_guard


def _item_name(actor: Any, item_kind: str) -> str:
    items = find_items(actor, (item_kind,))
    return (dig(items[0], "name") if items else None) or "Unknown"


def extract_header(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[HeaderSection]:
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.HEADER, context):
        return None

    system = dig(actor, "system")
    return HeaderSection(
        name=dig(actor, "name") or "Unknown",
        race=_item_name(actor, "race"),
        culture=_item_name(actor, "culture"),
        profession=_item_name(actor, "profession"),
        level=as_number(dig(system, "experience", "level"), 1),
        experience=as_number(first_present(system, [
            ("experience", "xp"),
            ("experience", "value"),
        ]), 0),
        realm=str(first_truthy(system, [("realm",), ("_realm",)], "None")),
        size=str(first_truthy(system, [("appearance", "size"), ("size",)], "Unknown")),
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        value = value.get("value", "")
    return str(value)


def _plain(value: Any) -> str:
    """Biography fields are stored as editor HTML; keep the text only."""
    text = _text(value)
    if not text:
        return ""
    return BeautifulSoup(text, "html.parser").get_text(" ", strip=True)


def extract_details(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[DetailsSection]:
    """Appearance and biography, with heights/weights in the world's units."""
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.DETAILS, context):
        return None

    system = dig(actor, "system")
    appearance = first_present(system, [("appearance",), ("details", "appearance")], {})
    system_units = options.measurement_system

    height = first_present(appearance, [("height",), ("heightInches",)])
    weight = first_present(appearance, [("weight",), ("weightPounds",)])

    return DetailsSection(
        gender=_text(first_present(appearance, [("gender",), ("sex",)])),
        age=_text(dig(appearance, "age")),
        height=height_to_display(height, system_units) if height is not None else "",
        weight=weight_to_display(weight, system_units) if weight is not None else "",
        hair=_text(dig(appearance, "hair")),
        eyes=_text(dig(appearance, "eyes")),
        skin=_text(dig(appearance, "skin")),
        faith=_text(first_truthy(system, [
            ("details", "faith"),
            ("details", "deity"),
            ("biography", "faith"),
        ])),
        biography=_plain(first_truthy(system, [
            ("biography", "value"),
            ("biography", "background"),
            ("details", "biography"),
            ("description",),
            ("biography",),
        ])),
        notes=_plain(first_truthy(system, [("biography", "notes"), ("notes",)])),
    )
