"""Turn a UnifiedDocument into a downloadable artifact.

JSON artifacts are the document itself, pretty-printed. HTML artifacts are
self-contained: rendered layout, the theme stylesheet inlined, and a backup
of the actor embedded as JSON so the file can be imported again later.
"""

import asyncio
import copy
import json
import logging
import re
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx
from jinja2 import Environment, FileSystemLoader, TemplateNotFound
from pydantic import BaseModel, ConfigDict

from config import TEMPLATES_DIR
from exceptions import AssetFetchFailure, ConfigurationError

from . import __version__
from .formatting import resolve_label
from .localization import Localizer
from .models import OutputFormat, UnifiedDocument

logger = logging.getLogger(__name__)

BACKUP_ELEMENT_ID = "foundry-actor-data"
EXPORT_FLAG_SCOPE = "rmu-sheet-export"


class Layout(BaseModel):
    """A sheet layout: its template and which optional blocks it renders."""

    model_config = ConfigDict(frozen=True)

    id: str
    label_key: str
    template: str
    show_skills: bool = True
    show_spells: bool = True


class Theme(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label_key: str
    stylesheet: str  # path under the templates directory, or an http(s) URL


LAYOUTS: Dict[str, Layout] = {
    "standard": Layout(id="standard", label_key="RMU_EXPORT.Layout.Standard", template="layouts/standard.html"),
    "compact": Layout(
        id="compact", label_key="RMU_EXPORT.Layout.Compact", template="layouts/compact.html",
        show_spells=False,
    ),
    "combat": Layout(
        id="combat", label_key="RMU_EXPORT.Layout.Combat", template="layouts/compact.html",
        show_skills=False, show_spells=False,
    ),
}

THEMES: Dict[str, Theme] = {
    "classic": Theme(id="classic", label_key="RMU_EXPORT.Theme.Classic", stylesheet="themes/classic.css"),
    "parchment": Theme(id="parchment", label_key="RMU_EXPORT.Theme.Parchment", stylesheet="themes/parchment.css"),
}


class Artifact(BaseModel):
    """A file ready to be handed to the host's save mechanism."""

    model_config = ConfigDict(frozen=True)

    filename: str
    mime_type: str
    content: str

    def write_to(self, directory: Union[str, Path]) -> Path:
        path = Path(directory) / self.filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.content, encoding="utf-8")
        logger.info(f"Wrote {path}")
        return path


def get_layout(layout_id: str) -> Layout:
    try:
        return LAYOUTS[layout_id]
    except KeyError:
        raise ConfigurationError(f"Unknown layout '{layout_id}'") from None


def get_theme(theme_id: str) -> Theme:
    try:
        return THEMES[theme_id]
    except KeyError:
        raise ConfigurationError(f"Unknown theme '{theme_id}'") from None


def build_filename(name: Optional[str], extension: str, when: Optional[datetime] = None) -> str:
    """
    Filename for an export: {name}_Sheet_{YYYY-MM-DD}_{HH-MM-SS}.{ext}

    Whitespace runs become underscores and every other non-alphanumeric
    character is dropped.

    Example:
        build_filename("Filroden the Bold", "html") -> "Filroden_the_Bold_Sheet_2026-10-19_14-03-27.html"
    """
    when = when or datetime.now()
    safe_name = re.sub(r"\s+", "_", (name or "").strip())
    safe_name = re.sub(r"[^A-Za-z0-9_]", "", safe_name) or "Character"
    return f"{safe_name}_Sheet_{when:%Y-%m-%d}_{when:%H-%M-%S}.{extension}"


def strip_private_keys(value: Any) -> Any:
    """Deep copy of value without any mapping key that starts with an underscore."""
    if isinstance(value, dict):
        return {
            key: strip_private_keys(item)
            for key, item in value.items()
            if not (isinstance(key, str) and key.startswith("_"))
        }
    if isinstance(value, (list, tuple)):
        return [strip_private_keys(item) for item in value]
    return copy.deepcopy(value)


def clean_backup(source: Dict[str, Any], when: Optional[datetime] = None) -> Dict[str, Any]:
    """The actor source as embedded in HTML exports, with an export marker flag."""
    backup = strip_private_keys(source)
    flags = backup.setdefault("flags", {})
    if not isinstance(flags, dict):
        flags = backup["flags"] = {}
    flags[EXPORT_FLAG_SCOPE] = {
        "exportedAt": (when or datetime.now()).isoformat(timespec="seconds"),
        "version": __version__,
    }
    return backup


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_sheet(document: UnifiedDocument, layout_id: str = "standard", localizer: Optional[Localizer] = None) -> str:
    """
    Render the sheet markup (without the document shell).

    Raises:
        ConfigurationError: If the layout or its template does not exist
    """
    layout = get_layout(layout_id)
    try:
        template = _environment().get_template(layout.template)
    except TemplateNotFound as e:
        raise ConfigurationError(f"Template for layout '{layout_id}' not found: {e}") from e

    return template.render(
        sheet=document.to_data(),
        layout=layout,
        t=lambda key, fallback: resolve_label(localizer, key, fallback),
    )


async def load_theme_css(theme_id: str, http_client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Load a theme's stylesheet text.

    Raises:
        ConfigurationError: If the theme id is unknown
        AssetFetchFailure: If the stylesheet could not be read or downloaded
    """
    theme = get_theme(theme_id)

    if theme.stylesheet.startswith(("http://", "https://")):
        try:
            if http_client is not None:
                response = await http_client.get(theme.stylesheet, timeout=30.0)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(theme.stylesheet, timeout=30.0)
            response.raise_for_status()
            return response.text
        except httpx.HTTPError as e:
            raise AssetFetchFailure(f"Failed to fetch theme '{theme_id}': {e}") from e

    path = TEMPLATES_DIR / theme.stylesheet
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except OSError as e:
        raise AssetFetchFailure(f"Failed to read theme '{theme_id}': {e}") from e


def _safe_json_for_script(data: Any) -> str:
    # "<\/" is the same string in JSON but cannot close the script element
    return json.dumps(data, indent=2, ensure_ascii=False).replace("</", "<\\/")


def wrap_document(title: str, css: str, body: str, backup: Dict[str, Any]) -> str:
    """Standalone HTML shell around the rendered sheet."""
    css = re.sub(r"</(style)", r"<\\/\1", css, flags=re.IGNORECASE)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
    <style>
{css}
    </style>
</head>
<body>
{body}
<script type="application/json" id="{BACKUP_ELEMENT_ID}">
{_safe_json_for_script(backup)}
</script>
</body>
</html>
"""


async def to_artifact(
    document: UnifiedDocument,
    output_format: Union[OutputFormat, str],
    *,
    layout_id: str = "standard",
    theme_id: str = "classic",
    backup_source: Optional[Dict[str, Any]] = None,
    localizer: Optional[Localizer] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    when: Optional[datetime] = None
) -> Artifact:
    """
    Build the export artifact.

    Args:
        document: Extracted sheet
        output_format: "json" or "html"
        layout_id: Layout for HTML output
        theme_id: Theme inlined into HTML output
        backup_source: Actor source data (actor.to_object()), required for HTML
        localizer: Label resolver for template headings
        http_client: Client for remote theme stylesheets
        when: Timestamp used in the filename (default: now)

    Returns:
        Artifact with filename, MIME type and text content

    Raises:
        ConfigurationError: Unknown layout/theme, or HTML requested without backup data
    """
    output_format = OutputFormat(output_format)
    when = when or datetime.now()
    name = document.subject_name

    if output_format == OutputFormat.JSON:
        return Artifact(
            filename=build_filename(name, "json", when),
            mime_type="application/json",
            content=json.dumps(document.to_data(), indent=2, ensure_ascii=False),
        )

    if backup_source is None:
        raise ConfigurationError("HTML export needs the actor source data for the embedded backup")

    body = render_sheet(document, layout_id, localizer)
    try:
        css = await load_theme_css(theme_id, http_client)
    except AssetFetchFailure as e:
        logger.warning(f"Theme unavailable, exporting unstyled: {e}")
        css = f"/* Theme '{theme_id}' could not be loaded: {str(e).replace('*/', '* /')} */"

    return Artifact(
        filename=build_filename(name, "html", when),
        mime_type="text/html",
        content=wrap_document(name, css, body, clean_backup(backup_source, when)),
    )
