"""Key to string resolution for RMU and exporter labels.

The host's i18n service is modelled by the Localizer protocol. Localization
is the file-backed implementation used outside Foundry: it reads a Foundry
language file (nested JSON) and flattens it into dotted keys.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def fill_placeholders(template: str, **data: Any) -> str:
    """
    Substitute {name} placeholders as Foundry's i18n.format does.

    Example:
        fill_placeholders("Export: {name}", name="Filroden") -> "Export: Filroden"
    """
    return _PLACEHOLDER.sub(
        lambda m: str(data[m.group(1)]) if m.group(1) in data else m.group(0),
        template
    )


class Localizer(Protocol):
    def localize(self, key: str) -> str:
        """Return the text for key, or key itself when there is none."""
        ...


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    flat: Dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(_flatten(value, full_key))
        elif value is not None:
            flat[full_key] = str(value)
    return flat


class Localization:
    """Dictionary-backed localizer with Foundry-style fallback to the key."""

    def __init__(self, translations: Optional[Dict[str, Any]] = None):
        self.translations = _flatten(translations or {})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Localization":
        """
        Load a Foundry language file.

        Raises:
            ConfigurationError: If the file is missing or not valid JSON
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot load language file '{path}': {e}") from e

        localization = cls(data)
        logger.debug(f"Loaded {len(localization.translations)} labels from {path}")
        return localization

    def has(self, key: str) -> bool:
        return key in self.translations

    def localize(self, key: str) -> str:
        return self.translations.get(key, key)

    def format(self, key: str, **data: Any) -> str:
        """Localize key and substitute {name} placeholders; unknown ones are left as-is."""
        return fill_placeholders(self.localize(key), **data)


class NullLocalizer:
    """Localizer that knows no keys."""

    def localize(self, key: str) -> str:
        return key
