"""
Command line front end: export an actor JSON file to a sheet, or restore an
actor JSON file from an exported HTML sheet.

Usage:
    rmu-sheet export actors/filroden.json --format html --layout compact --metric
    rmu-sheet export actors/filroden.json --format json --skip inventory details
    rmu-sheet import Filroden_the_Bold_Sheet_2026-10-19_14-03-27.html actors/filroden.json
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from config import get_lang_path
from exceptions import MissingBackupData, SheetExportError, TypeMismatch
from logging_config import setup_logging

from . import __version__
from .formatting import format_label
from .host import LocalActor
from .localization import Localization, Localizer, NullLocalizer
from .models import OutputFormat, SectionKey
from .output import LAYOUTS, THEMES, Artifact
from .source import dig
from .workflow import run_export, run_import

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rmu-sheet",
        description="Export Rolemaster Unified actors to character sheets and restore them from backups"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="Export an actor JSON file to a sheet")
    export.add_argument("actor", type=Path, help="Foundry actor JSON file")
    export.add_argument(
        "--format",
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.HTML.value,
        help="Artifact format (default: html)"
    )
    export.add_argument("--layout", choices=sorted(LAYOUTS), default="standard", help="HTML layout (default: standard)")
    export.add_argument("--theme", choices=sorted(THEMES), default="classic", help="HTML theme (default: classic)")
    export.add_argument("--all-skills", action="store_true", help="Include unranked skills")
    export.add_argument(
        "--metric",
        action="store_true",
        help="Display metric units (default: RMU_MEASUREMENT_SYSTEM)"
    )
    export.add_argument("--no-portrait", action="store_true", help="Do not embed the actor portrait")
    export.add_argument(
        "--skip",
        nargs="+",
        default=[],
        choices=[section.value for section in SectionKey],
        metavar="SECTION",
        help="Sections to leave out"
    )
    export.add_argument("--lang", type=Path, help="Foundry language file (default: RMU_LANG_FILE)")
    export.add_argument("--output-dir", type=Path, default=Path("."), help="Where to write the artifact")

    restore = subparsers.add_parser("import", help="Restore an actor JSON file from an exported HTML sheet")
    restore.add_argument("artifact", type=Path, help="Exported HTML sheet")
    restore.add_argument("actor", type=Path, help="Foundry actor JSON file to overwrite")
    restore.add_argument("--lang", type=Path, help="Foundry language file (default: RMU_LANG_FILE)")

    return parser


def form_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """The export dialog submission equivalent to the command line flags."""
    return {
        "format": args.format,
        "layout_id": args.layout,
        "theme_id": args.theme,
        "skill_filter": "all" if args.all_skills else "ranked",
        "sections": {section: False for section in args.skip},
        "include_portrait": not args.no_portrait,
    }


async def export_command(args: argparse.Namespace, localizer: Localizer) -> Artifact:
    actor = LocalActor.from_file(args.actor)
    form = form_from_args(args)

    async def prompt(context: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"{context['title']}: {form}")
        return form

    async def save(artifact: Artifact) -> None:
        await asyncio.to_thread(artifact.write_to, args.output_dir)

    async with httpx.AsyncClient() as client:
        return await run_export(
            actor,
            prompt,
            save,
            localizer,
            "metric" if args.metric else None,
            http_client=client,
            system_version=dig(actor.data, "_stats", "systemVersion"),
        )


async def import_command(args: argparse.Namespace):
    actor = LocalActor.from_file(args.actor)

    async def prompt_file() -> str:
        return await asyncio.to_thread(args.artifact.read_text, encoding="utf-8")

    result = await run_import(actor, prompt_file)
    actor.save()
    return result


def user_message(localizer: Localizer, command: str, error: Exception) -> str:
    """Localized failure text shown to the user."""
    if isinstance(error, TypeMismatch):
        return format_label(
            localizer, "RMU_EXPORT.Import.TypeMismatch", "Cannot import a '{source}' into a '{target}' actor",
            source=error.source_type, target=error.target_type,
        )
    if isinstance(error, MissingBackupData):
        return format_label(
            localizer, "RMU_EXPORT.Import.MissingBackup", "The selected file does not contain actor backup data"
        )
    if command == "import":
        return format_label(localizer, "RMU_EXPORT.Import.Failure", "Import failed: {error}", error=error)
    return format_label(localizer, "RMU_EXPORT.Export.Failure", "Export failed: {error}", error=error)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the rmu-sheet command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging("sheet_export", level=logging.DEBUG if args.verbose else logging.INFO)

    localizer: Localizer = NullLocalizer()
    try:
        localizer = Localization.from_file(args.lang or get_lang_path())
        if args.command == "export":
            artifact = asyncio.run(export_command(args, localizer))
            print(format_label(
                localizer, "RMU_EXPORT.Export.Success", "Exported {filename}",
                filename=args.output_dir / artifact.filename,
            ))
        else:
            result = asyncio.run(import_command(args))
            print(format_label(
                localizer, "RMU_EXPORT.Import.Success", "Restored {name} from backup", name=result.actor_name
            ))
        return 0
    except (SheetExportError, OSError, ValueError) as e:
        logger.error(user_message(localizer, args.command, e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
