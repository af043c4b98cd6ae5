"""Tests for sheet_export.formatting."""

import pytest
from unittest.mock import MagicMock

from sheet_export.formatting import format_bonus, format_label, probe_label, resolve_label, slugify_key
from sheet_export.localization import Localization, NullLocalizer


class TestFormatBonus:
    """Tests for signed bonus formatting."""

    def test_positive_gets_plus_sign(self):
        assert format_bonus(5) == "+5"

    def test_zero_is_numeric(self):
        result = format_bonus(0)

        assert result == 0
        assert isinstance(result, int)

    def test_negative_unchanged(self):
        assert format_bonus(-3) == -3

    def test_none_is_numeric_zero(self):
        result = format_bonus(None)

        assert result == 0
        assert not isinstance(result, str)

    def test_positive_float(self):
        assert format_bonus(2.5) == "+2.5"

    def test_bool_unchanged(self):
        assert format_bonus(True) is True

    @pytest.mark.parametrize("value", [1, 7, 42, 150])
    def test_plus_sign_iff_positive(self, value):
        assert format_bonus(value) == f"+{value}"
        assert format_bonus(-value) == -value


class TestResolveLabel:
    """Tests for localization key lookup with fallback."""

    def test_known_key(self):
        localizer = Localization({"RMU": {"Stat": {"Ag": "Agility"}}})

        assert resolve_label(localizer, "RMU.Stat.Ag", "Ag") == "Agility"

    def test_echoed_key_is_missing(self):
        assert resolve_label(NullLocalizer(), "RMU.Stat.Ag", "Ag") == "Ag"

    def test_empty_text_is_missing(self):
        localizer = Localization({"RMU": {"Stat": {"Ag": ""}}})

        assert resolve_label(localizer, "RMU.Stat.Ag", "Ag") == "Ag"

    def test_raising_localizer_falls_back(self):
        localizer = MagicMock()
        localizer.localize.side_effect = RuntimeError("i18n not ready")

        assert resolve_label(localizer, "RMU.Stat.Ag", "Ag") == "Ag"

    def test_no_localizer(self):
        assert resolve_label(None, "RMU.Stat.Ag", None) is None


class TestProbeLabel:
    """Tests for multi-key probing."""

    def test_first_resolving_key_wins(self):
        localizer = Localization({"RMU": {"Attack": {"Dagger": "Dagger (attack)"}}})

        result = probe_label(localizer, ("RMU.AttackTable.Dagger", "RMU.Attack.Dagger"), "dagger")

        assert result == "Dagger (attack)"

    def test_raw_value_when_nothing_resolves(self):
        assert probe_label(NullLocalizer(), ("RMU.A", "RMU.B"), "Mace") == "Mace"

    def test_none_raw_is_empty(self):
        assert probe_label(None, ("RMU.A",), None) == ""


class TestFormatLabel:
    """Tests for messages with {name} placeholders."""

    def test_localized_template(self):
        localizer = Localization({"RMU_EXPORT": {"Import": {"Success": "{name} wiederhergestellt"}}})

        assert format_label(localizer, "RMU_EXPORT.Import.Success", "Restored {name}", name="Filroden") == "Filroden wiederhergestellt"

    def test_fallback_template(self):
        assert format_label(None, "RMU_EXPORT.Import.Success", "Restored {name}", name="Filroden") == "Restored Filroden"

    def test_unknown_placeholder_kept(self):
        assert format_label(NullLocalizer(), "Msg", "{source} into {target}", source="Creature") == "Creature into {target}"


class TestSlugifyKey:
    def test_words_are_joined(self):
        assert slugify_key("Short Sword") == "ShortSword"

    def test_punctuation_splits_words(self):
        assert slugify_key("open-ended roll") == "OpenEndedRoll"

    def test_none(self):
        assert slugify_key(None) == ""
