"""User preferences and today's energy level (persistence).

State persistence (two durable keys under data/state/):
- neuro-study-preferences: JSON object with the UserPreferences fields
- neuro-study-energy-today: plain energy string ("low" | "normal" | "high")

The energy key carries no date, so it does not reset across days.

Saving writes the local keys first. An optional remote mirror (the
profiles table) is then updated; mirror failures are logged and never
propagate, local state stays authoritative.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Callable

import structlog

from neurostudy.core.modes import (
    DEFAULT_ENERGY,
    EnergyLevel,
    SupportMode,
    parse_energy,
    parse_modes,
)

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

PREFERENCES_KEY = "neuro-study-preferences"
ENERGY_KEY = "neuro-study-energy-today"

TIMER_PRESETS = (10, 25, 45)
DEFAULT_TIMER_PRESET = 25


class PreferencesValidationError(ValueError):
    """Raised when a preference value is outside its allowed range."""


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass(frozen=True)
class UserPreferences:
    """Raw, user-tunable settings."""

    selected_modes: tuple[SupportMode, ...] = ()
    timer_preset: int = DEFAULT_TIMER_PRESET
    reading_large_font: bool = False
    reading_increased_spacing: bool = False
    reading_one_section_at_a_time: bool = False
    reading_highlight_current: bool = False
    sensory_reduce_motion: bool = False
    sensory_sound_off: bool = True
    motor_large_buttons: bool = False

    def has_mode(self, mode: SupportMode) -> bool:
        return mode in self.selected_modes

    def with_mode(self, mode: SupportMode, enabled: bool) -> UserPreferences:
        """Return a copy with one mode enabled or disabled."""
        modes = [m for m in self.selected_modes if m != mode]
        if enabled:
            modes.append(mode)
        return replace(self, selected_modes=tuple(modes))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["selected_modes"] = [m.value for m in self.selected_modes]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> UserPreferences:
        """Build preferences from a (possibly partial) saved record.

        Missing fields take their defaults, unknown modes are dropped and an
        out-of-range timer preset falls back to the default preset.
        """
        data = data or {}
        defaults = cls()

        timer = data.get("timer_preset", defaults.timer_preset)
        if timer not in TIMER_PRESETS:
            logger.warning("invalid_timer_preset_ignored", value=timer)
            timer = defaults.timer_preset

        def flag(name: str) -> bool:
            return bool(data.get(name, getattr(defaults, name)))

        return cls(
            selected_modes=tuple(parse_modes(data.get("selected_modes"))),
            timer_preset=timer,
            reading_large_font=flag("reading_large_font"),
            reading_increased_spacing=flag("reading_increased_spacing"),
            reading_one_section_at_a_time=flag("reading_one_section_at_a_time"),
            reading_highlight_current=flag("reading_highlight_current"),
            sensory_reduce_motion=flag("sensory_reduce_motion"),
            sensory_sound_off=flag("sensory_sound_off"),
            motor_large_buttons=flag("motor_large_buttons"),
        )


def validate_timer_preset(value: int) -> int:
    """Check a timer preset chosen by the user."""
    if value not in TIMER_PRESETS:
        raise PreferencesValidationError(
            f"Timer preset must be one of {', '.join(str(t) for t in TIMER_PRESETS)}"
        )
    return value


# =============================================================================
# LOCAL KEY STORE
# =============================================================================


@dataclass
class LocalStore:
    """Durable string key/value store, one file per key."""

    state_dir: Path = field(default_factory=lambda: Path("data/state"))

    def _path(self, key: str) -> Path:
        return self.state_dir / key

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("local_key_read_failed", key=key, error=str(e))
            return None

    def set(self, key: str, value: str) -> Path:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        path.write_text(value, encoding="utf-8")
        return path


ProfileMirror = Callable[[UserPreferences], None]


class PreferenceStore:
    """Reads and writes preferences and energy.

    Both values are read once at construction and rewritten on every change.
    """

    def __init__(
        self,
        store: LocalStore | None = None,
        mirror: ProfileMirror | None = None,
    ):
        self._store = store or LocalStore()
        self._mirror = mirror
        self.preferences = self._load_preferences()
        self.energy_level = self._load_energy()

    def _load_preferences(self) -> UserPreferences:
        raw = self._store.get(PREFERENCES_KEY)
        if raw is None:
            logger.debug("preferences_not_found")
            return UserPreferences()
        try:
            return UserPreferences.from_dict(json.loads(raw))
        except (json.JSONDecodeError, TypeError, AttributeError) as e:
            logger.error("preferences_load_failed", error=str(e))
            return UserPreferences()

    def _load_energy(self) -> EnergyLevel:
        raw = self._store.get(ENERGY_KEY)
        if raw is None:
            return DEFAULT_ENERGY
        return parse_energy(raw)

    def set_preferences(self, preferences: UserPreferences) -> UserPreferences:
        """Replace preferences, persist locally, then mirror remotely."""
        self.preferences = preferences
        self._store.set(
            PREFERENCES_KEY,
            json.dumps(preferences.to_dict(), indent=2, ensure_ascii=False),
        )
        logger.info(
            "preferences_saved",
            modes=[m.value for m in preferences.selected_modes],
            timer_preset=preferences.timer_preset,
        )
        self._sync_remote(preferences)
        return preferences

    def update_mode(self, mode: SupportMode, enabled: bool) -> UserPreferences:
        """Enable or disable a single support mode."""
        return self.set_preferences(self.preferences.with_mode(mode, enabled))

    def set_energy_level(self, level: EnergyLevel) -> EnergyLevel:
        """Persist today's energy level."""
        self.energy_level = level
        self._store.set(ENERGY_KEY, level.value)
        logger.info("energy_level_saved", energy=level.value)
        return level

    def _sync_remote(self, preferences: UserPreferences) -> None:
        if self._mirror is None:
            return
        try:
            self._mirror(preferences)
        except sqlite3.Error as e:
            # Local state already reflects the change; no rollback.
            logger.error("profile_sync_failed", error=str(e))
