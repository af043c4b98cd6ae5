"""Request/response flows behind the export button and the import action.

The host supplies the interactive parts as async callables: a dialog prompt
that returns the submitted form (or None when the user closes it), a file
picker that returns artifact text (or None), and a save hook. Cancelling
resolves the flow with None and produces nothing.
"""

import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from config import get_measurement_system
from exceptions import ConfigurationError

from .formatting import format_label, resolve_label, slugify_key
from .importer import ImportResult, parse_artifact, reconcile
from .localization import Localizer
from .models import ExportOptions, OutputFormat, SectionKey, supported_sections
from .orchestrate import TokenFactory, build_document
from .output import LAYOUTS, THEMES, Artifact, get_layout, to_artifact
from .source import dig

logger = logging.getLogger(__name__)

ExportPrompt = Callable[[Dict[str, Any]], Awaitable[Optional[Mapping[str, Any]]]]
SaveHook = Callable[[Artifact], Awaitable[Any]]
FilePrompt = Callable[[], Awaitable[Optional[str]]]

SKILL_FILTERS = (
    ("ranked", "RMU_EXPORT.SkillFilter.Ranked", "Ranked skills only"),
    ("all", "RMU_EXPORT.SkillFilter.All", "All skills"),
)


def is_exportable(actor: Any) -> bool:
    """True if the actor's type is one the exporter supports."""
    return bool(supported_sections(dig(actor, "type")))


def export_dialog_context(actor: Any, localizer: Optional[Localizer] = None) -> Dict[str, Any]:
    """
    Everything the export dialog needs to render its choices.

    Only sections valid for the actor's type are offered. Each layout lists
    whether it renders skills and spells so the dialog can hide toggles the
    layout would ignore.
    """
    name = dig(actor, "name") or "Character"
    title = format_label(localizer, "RMU_EXPORT.Dialog.Title", "Export: {name}", name=name)
    supported = supported_sections(dig(actor, "type"))

    return {
        "title": title,
        "formats": [fmt.value for fmt in OutputFormat],
        "layouts": [
            {
                "id": layout.id,
                "label": resolve_label(localizer, layout.label_key, layout.id.title()),
                "show_skills": layout.show_skills,
                "show_spells": layout.show_spells,
            }
            for layout in LAYOUTS.values()
        ],
        "themes": [
            {"id": theme.id, "label": resolve_label(localizer, theme.label_key, theme.id.title())}
            for theme in THEMES.values()
        ],
        "sections": [
            {
                "key": section.value,
                "label": resolve_label(
                    localizer,
                    f"RMU_EXPORT.Section.{slugify_key(section.value)}",
                    section.value.replace("_", " ").title(),
                ),
                "enabled": True,
            }
            for section in SectionKey
            if section in supported
        ],
        "skill_filters": [
            {"id": filter_id, "label": resolve_label(localizer, key, fallback)}
            for filter_id, key, fallback in SKILL_FILTERS
        ],
        "defaults": {
            "format": OutputFormat.HTML.value,
            "layout_id": "standard",
            "theme_id": "classic",
            "skill_filter": "ranked",
            "include_portrait": True,
        },
    }


def apply_layout(options: ExportOptions) -> ExportOptions:
    """Switch off sections the chosen layout does not render."""
    layout = get_layout(options.layout_id)
    section_enabled = dict(options.section_enabled)
    if not layout.show_skills:
        section_enabled[SectionKey.SKILLS] = False
    if not layout.show_spells:
        section_enabled[SectionKey.SPELLS] = False
    return options.model_copy(update={"section_enabled": section_enabled})


def source_data(actor: Any) -> Dict[str, Any]:
    """The actor's stored source data, as embedded in HTML backups."""
    to_object = getattr(actor, "to_object", None)
    if callable(to_object):
        return to_object()
    return copy.deepcopy(dict(actor))


async def run_export(
    actor: Any,
    prompt: ExportPrompt,
    save: SaveHook,
    localizer: Optional[Localizer] = None,
    measurement_system: Any = None,
    *,
    token_factory: Optional[TokenFactory] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    system_version: Optional[str] = None
) -> Optional[Artifact]:
    """
    Ask for export options, build the artifact and hand it to save.

    Args:
        actor: Actor to export
        prompt: Receives export_dialog_context(), returns form data or None
        save: Receives the finished Artifact
        localizer: Label resolver
        measurement_system: World setting (default: RMU_MEASUREMENT_SYSTEM)
        token_factory: Host hook for building an ephemeral token
        http_client: Client for portrait and theme downloads
        system_version: RMU system version recorded in the document meta

    Returns:
        The saved Artifact, or None if the user cancelled

    Raises:
        ConfigurationError: If the actor type is not exportable, or the
            form names an unknown layout, theme or format
    """
    if not is_exportable(actor):
        raise ConfigurationError(f"Actors of type '{dig(actor, 'type')}' cannot be exported")

    form = await prompt(export_dialog_context(actor, localizer))
    if form is None:
        logger.info(f"Export of '{dig(actor, 'name')}' cancelled")
        return None

    try:
        output_format = OutputFormat(str(form.get("format", OutputFormat.HTML.value)).lower())
    except ValueError:
        raise ConfigurationError(f"Unknown export format '{form.get('format')}'") from None

    if measurement_system is None:
        measurement_system = get_measurement_system()
    options = apply_layout(ExportOptions.from_form(form, dig(actor, "type"), measurement_system))
    logger.info(
        f"Exporting '{dig(actor, 'name')}' as {output_format.value} "
        f"(layout={options.layout_id}, theme={options.theme_id})"
    )

    document = await build_document(
        actor,
        options,
        localizer,
        token_factory=token_factory,
        http_client=http_client,
        system_version=system_version,
    )
    artifact = await to_artifact(
        document,
        output_format,
        layout_id=options.layout_id,
        theme_id=options.theme_id,
        backup_source=source_data(actor) if output_format == OutputFormat.HTML else None,
        localizer=localizer,
        http_client=http_client,
    )

    await save(artifact)
    logger.info(f"Saved {artifact.filename}")
    return artifact


async def run_import(actor: Any, prompt_file: FilePrompt) -> Optional[ImportResult]:
    """
    Ask for an exported HTML sheet and restore the actor from its backup.

    Returns:
        ImportResult, or None if the user cancelled

    Raises:
        MissingBackupData: If the file has no usable backup block
        TypeMismatch: If the backup belongs to a different actor type
        ReconciliationFailure: If the replace sequence failed part-way
    """
    text = await prompt_file()
    if text is None:
        logger.info(f"Import into '{dig(actor, 'name')}' cancelled")
        return None

    payload = parse_artifact(text)
    return await reconcile(actor, payload)
