"""Centralized configuration for the RMU character sheet exporter.

This module provides:
- PROJECT_ROOT and SRC_DIR paths
- Environment variable access with get_env()
- Automatic .env loading

Usage:
    from config import PROJECT_ROOT, get_env

    foundry_url = get_env("FOUNDRY_URL", default="http://localhost:30000")
    lang_file = get_lang_path()
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Calculate paths once at import time
SRC_DIR = Path(__file__).parent.resolve()
PROJECT_ROOT = SRC_DIR.parent.resolve()
PACKAGE_DIR = SRC_DIR / "sheet_export"
TEMPLATES_DIR = PACKAGE_DIR / "templates"
DEFAULT_LANG_PATH = PACKAGE_DIR / "lang" / "en.json"

# Load .env from project root
_env_path = PROJECT_ROOT / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


def get_env(key: str, default: Optional[str] = None) -> str:
    """Get environment variable value.

    Args:
        key: Environment variable name
        default: Default value if not set. If None and key not found, raises KeyError.

    Returns:
        Environment variable value or default

    Raises:
        KeyError: If key not found and no default provided
    """
    value = os.environ.get(key)
    if value is not None:
        return value
    if default is not None:
        return default
    raise KeyError(f"Environment variable '{key}' not set and no default provided")


def get_foundry_url() -> str:
    """Get FoundryVTT URL (used to resolve relative portrait and theme paths)."""
    return get_env("FOUNDRY_URL", default="http://localhost:30000")


def get_measurement_system() -> str:
    """Get the world-wide measurement system setting ("imperial" or "metric")."""
    return get_env("RMU_MEASUREMENT_SYSTEM", default="imperial").strip().lower()


def get_lang_path() -> Path:
    """Get the language file used to resolve RMU labels."""
    return Path(get_env("RMU_LANG_FILE", default=str(DEFAULT_LANG_PATH)))
