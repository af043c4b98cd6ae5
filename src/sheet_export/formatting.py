"""Bonus formatting and localization-key probing helpers."""

import logging
import re
from typing import Any, Iterable, Optional, Union

from .localization import Localizer, fill_placeholders

logger = logging.getLogger(__name__)

Bonus = Union[int, float, str]


def format_bonus(value: Any) -> Bonus:
    """
    Format a bonus with an explicit sign for positive values.

    Used for OBs, DBs, stat bonuses, resistances and skill totals.

    Args:
        value: Numeric bonus (or None)

    Returns:
        0 for None, "+N" for positive numbers, the value unchanged otherwise

    Examples:
        format_bonus(5)    -> "+5"
        format_bonus(0)    -> 0
        format_bonus(-3)   -> -3
        format_bonus(None) -> 0
    """
    if value is None:
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return f"+{value}"
    return value


def resolve_label(localizer: Optional[Localizer], key: str, fallback: Optional[str]) -> Optional[str]:
    """
    Look up a localization key, returning fallback when it is missing.

    A key counts as missing when the localizer echoes it back (Foundry
    semantics), returns an empty value, or raises. Never raises.
    """
    if localizer is None or not key:
        return fallback
    try:
        text = localizer.localize(key)
    except Exception as e:
        logger.debug(f"Localization lookup failed for '{key}': {e}")
        return fallback
    if not text or text == key:
        return fallback
    return text


def format_label(localizer: Optional[Localizer], key: str, fallback: str, **data: Any) -> str:
    """Resolve a message key (fallback when missing) and fill its {name} placeholders."""
    return fill_placeholders(resolve_label(localizer, key, fallback), **data)


def probe_label(localizer: Optional[Localizer], keys: Iterable[str], raw: Any) -> str:
    """Return the first key that localizes, else the raw value as a string."""
    fallback = "" if raw is None else str(raw)
    for key in keys:
        text = resolve_label(localizer, key, None)
        if text is not None:
            return text
    return fallback


def slugify_key(name: Any) -> str:
    """
    Turn a display name into a localization key suffix.

    Examples:
        "Short Sword"      -> "ShortSword"
        "open-ended roll"  -> "OpenEndedRoll"
    """
    if name is None:
        return ""
    words = re.split(r"[^0-9A-Za-z]+", str(name))
    return "".join(w[:1].upper() + w[1:] for w in words if w)
