"""Centralized exception hierarchy for the RMU sheet exporter.

Usage:
    from exceptions import TypeMismatch, MissingBackupData

    raise MissingBackupData("No #foundry-actor-data block in artifact")
    raise TypeMismatch("Creature", "Character")

Derivation and asset failures are recovered where they happen and only
logged; the import errors propagate to the caller.
"""


class SheetExportError(Exception):
    """Base exception for all sheet exporter errors."""
    pass


class DerivationFailure(SheetExportError):
    """Raised when the rules engine could not compute derived fields.

    Examples:
        - Token HUD derivation crashed
        - prepare_data() raised on an incomplete actor
    """
    pass


class AssetFetchFailure(SheetExportError):
    """Raised when an auxiliary asset could not be loaded.

    Examples:
        - Portrait image request failed
        - Theme stylesheet missing
    """
    pass


class TypeMismatch(SheetExportError):
    """Raised when an imported actor's type differs from the target actor's type."""

    def __init__(self, source_type: str, target_type: str):
        self.source_type = source_type
        self.target_type = target_type
        super().__init__(
            f"Cannot import a '{source_type}' into a '{target_type}' actor"
        )


class MissingBackupData(SheetExportError):
    """Raised when an artifact has no embedded, parseable actor backup."""
    pass


class ReconciliationFailure(SheetExportError):
    """Raised when the destructive import sequence fails part way.

    The actor may be left partially updated; there is no rollback.
    """
    pass


class ConfigurationError(SheetExportError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Unknown layout or theme id
        - Unreadable language file
    """
    pass
