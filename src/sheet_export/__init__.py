"""Rolemaster Unified character sheet export and backup import."""

__version__ = "1.0.0"

from .models import ExportOptions, OutputFormat, SectionKey, UnifiedDocument
from .orchestrate import build_document, ensure_derived_data
from .output import Artifact, to_artifact
from .importer import ImportResult, parse_artifact, reconcile
from .workflow import run_export, run_import

__all__ = [
    "__version__",
    "Artifact",
    "ExportOptions",
    "ImportResult",
    "OutputFormat",
    "SectionKey",
    "UnifiedDocument",
    "build_document",
    "ensure_derived_data",
    "parse_artifact",
    "reconcile",
    "run_export",
    "run_import",
    "to_artifact",
]
