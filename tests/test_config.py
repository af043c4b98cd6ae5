"""Tests for centralized configuration module."""

import pytest
from pathlib import Path


class TestProjectConfig:
    """Tests for project configuration."""

    def test_project_root_is_correct(self):
        """Should return the project root directory."""
        from config import PROJECT_ROOT

        assert (PROJECT_ROOT / "pyproject.toml").exists()
        assert (PROJECT_ROOT / "src").is_dir()

    def test_src_dir_is_correct(self):
        """Should return the src directory."""
        from config import SRC_DIR

        assert SRC_DIR.is_dir()
        assert (SRC_DIR / "sheet_export" / "__init__.py").exists()

    def test_bundled_assets_exist(self):
        """Templates and the default language file ship with the package."""
        from config import DEFAULT_LANG_PATH, TEMPLATES_DIR

        assert DEFAULT_LANG_PATH.exists()
        assert (TEMPLATES_DIR / "layouts" / "standard.html").exists()
        assert (TEMPLATES_DIR / "themes" / "classic.css").exists()

    def test_get_env_returns_value(self, monkeypatch):
        """Should return environment variable value."""
        from config import get_env

        monkeypatch.setenv("TEST_CONFIG_VAR", "test_value")

        assert get_env("TEST_CONFIG_VAR") == "test_value"

    def test_get_env_returns_default(self):
        """Should return default when env var not set."""
        from config import get_env

        result = get_env("NONEXISTENT_VAR_12345", default="fallback")

        assert result == "fallback"

    def test_get_env_raises_without_default(self):
        """Should raise KeyError when var not set and no default."""
        from config import get_env

        with pytest.raises(KeyError):
            get_env("NONEXISTENT_VAR_12345")


@pytest.mark.smoke
@pytest.mark.unit
class TestSettings:
    """Tests for the exporter settings read from the environment."""

    def test_foundry_url_default(self, monkeypatch):
        from config import get_foundry_url

        monkeypatch.delenv("FOUNDRY_URL", raising=False)

        assert get_foundry_url() == "http://localhost:30000"

    def test_foundry_url_override(self, monkeypatch):
        from config import get_foundry_url

        monkeypatch.setenv("FOUNDRY_URL", "https://vtt.example.com")

        assert get_foundry_url() == "https://vtt.example.com"

    def test_measurement_system_default_is_imperial(self, monkeypatch):
        from config import get_measurement_system

        monkeypatch.delenv("RMU_MEASUREMENT_SYSTEM", raising=False)

        assert get_measurement_system() == "imperial"

    def test_measurement_system_is_normalized(self, monkeypatch):
        from config import get_measurement_system

        monkeypatch.setenv("RMU_MEASUREMENT_SYSTEM", " Metric ")

        assert get_measurement_system() == "metric"

    def test_lang_path_default(self, monkeypatch):
        from config import DEFAULT_LANG_PATH, get_lang_path

        monkeypatch.delenv("RMU_LANG_FILE", raising=False)

        assert get_lang_path() == DEFAULT_LANG_PATH

    def test_lang_path_override(self, monkeypatch, tmp_path):
        from config import get_lang_path

        custom = tmp_path / "de.json"
        monkeypatch.setenv("RMU_LANG_FILE", str(custom))

        assert get_lang_path() == Path(custom)
