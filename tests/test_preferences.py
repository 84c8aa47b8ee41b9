"""Tests for modes parsing, preferences and the preference store."""

import json
import sqlite3
from unittest.mock import MagicMock

import pytest

from neurostudy.core.modes import EnergyLevel, SupportMode, parse_energy, parse_modes
from neurostudy.core.preferences import (
    ENERGY_KEY,
    PREFERENCES_KEY,
    LocalStore,
    PreferenceStore,
    PreferencesValidationError,
    UserPreferences,
    validate_timer_preset,
)


class TestParsing:
    """Tests for lenient mode/energy parsing."""

    def test_parse_modes_drops_unknown_and_duplicates(self):
        assert parse_modes(["adhd", "bogus", "ADHD", "autism"]) == [
            SupportMode.ADHD,
            SupportMode.AUTISM,
        ]

    def test_parse_modes_none(self):
        assert parse_modes(None) == []

    @pytest.mark.parametrize(
        "raw, expected",
        [("low", EnergyLevel.LOW), ("HIGH", EnergyLevel.HIGH), ("", EnergyLevel.NORMAL), ("meh", EnergyLevel.NORMAL), (None, EnergyLevel.NORMAL)],
    )
    def test_parse_energy(self, raw, expected):
        assert parse_energy(raw) == expected


class TestUserPreferences:
    """Tests for UserPreferences."""

    def test_defaults(self):
        p = UserPreferences()
        assert p.selected_modes == ()
        assert p.timer_preset == 25
        assert p.sensory_sound_off is True

    def test_with_mode(self):
        p = UserPreferences().with_mode(SupportMode.ADHD, True)
        assert p.has_mode(SupportMode.ADHD)
        assert not p.with_mode(SupportMode.ADHD, False).has_mode(SupportMode.ADHD)

    def test_with_mode_no_duplicates(self):
        p = UserPreferences().with_mode(SupportMode.ADHD, True).with_mode(SupportMode.ADHD, True)
        assert p.selected_modes == (SupportMode.ADHD,)

    def test_from_dict_partial(self):
        p = UserPreferences.from_dict({"selected_modes": ["dyslexia", "nope"]})
        assert p.selected_modes == (SupportMode.DYSLEXIA,)
        assert p.timer_preset == 25

    def test_from_dict_invalid_timer_falls_back(self):
        assert UserPreferences.from_dict({"timer_preset": 7}).timer_preset == 25

    def test_to_dict_round_trip(self):
        p = UserPreferences(selected_modes=(SupportMode.AUTISM,), timer_preset=45, motor_large_buttons=True)
        assert UserPreferences.from_dict(json.loads(json.dumps(p.to_dict()))) == p

    def test_validate_timer_preset(self):
        assert validate_timer_preset(10) == 10
        with pytest.raises(PreferencesValidationError):
            validate_timer_preset(30)


class TestPreferenceStore:
    """Tests for PreferenceStore persistence."""

    def test_defaults_when_empty(self, tmp_path):
        store = PreferenceStore(LocalStore(tmp_path))
        assert store.preferences == UserPreferences()
        assert store.energy_level == EnergyLevel.NORMAL

    def test_persists_preferences(self, tmp_path):
        store = PreferenceStore(LocalStore(tmp_path))
        store.update_mode(SupportMode.ADHD, True)

        saved = json.loads((tmp_path / PREFERENCES_KEY).read_text())
        assert saved["selected_modes"] == ["adhd"]
        assert PreferenceStore(LocalStore(tmp_path)).preferences.has_mode(SupportMode.ADHD)

    def test_persists_energy_as_plain_string(self, tmp_path):
        store = PreferenceStore(LocalStore(tmp_path))
        store.set_energy_level(EnergyLevel.LOW)

        assert (tmp_path / ENERGY_KEY).read_text() == "low"
        assert PreferenceStore(LocalStore(tmp_path)).energy_level == EnergyLevel.LOW

    def test_corrupt_preferences_fall_back(self, tmp_path):
        (tmp_path / PREFERENCES_KEY).write_text("{not json")
        assert PreferenceStore(LocalStore(tmp_path)).preferences == UserPreferences()

    def test_mirror_called(self, tmp_path):
        mirror = MagicMock()
        store = PreferenceStore(LocalStore(tmp_path), mirror=mirror)
        p = store.update_mode(SupportMode.AUTISM, True)
        mirror.assert_called_once_with(p)

    def test_mirror_failure_does_not_roll_back(self, tmp_path):
        """Remote write failures are logged; local state stays."""
        mirror = MagicMock(side_effect=sqlite3.OperationalError("disk I/O error"))
        store = PreferenceStore(LocalStore(tmp_path), mirror=mirror)

        store.update_mode(SupportMode.DYSLEXIA, True)

        assert store.preferences.has_mode(SupportMode.DYSLEXIA)
        assert PreferenceStore(LocalStore(tmp_path)).preferences.has_mode(SupportMode.DYSLEXIA)
