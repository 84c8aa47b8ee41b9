"""Experience profile derivation.

Maps (preferences, energy level) to one fully resolved configuration used
across the app: timer defaults, task ceilings, reading layout, sensory
flags, style tags and the modes forwarded to the AI tutor.

derive_profile() is pure and total. Conflicts are resolved in a fixed
order:

1. Timer: preset -> ADHD override (25, unless energy is low) -> low/fatigue
   ceiling (15) -> high-energy floor (45, never with fatigue)
2. Max tasks: 5 -> low/fatigue (2) or high (6) -> autism ceiling (3) last

Style tags are reconciled against a StyleRoot value rather than written to
shared global state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from neurostudy.core.modes import EnergyLevel, SupportMode, parse_energy, parse_modes
from neurostudy.core.preferences import UserPreferences

# =============================================================================
# CONSTANTS
# =============================================================================

ADHD_TIMER_MINUTES = 25
LOW_ENERGY_TIMER_CEILING = 15
HIGH_ENERGY_TIMER_FLOOR = 45

DEFAULT_MAX_TASKS = 5
LOW_ENERGY_MAX_TASKS = 2
HIGH_ENERGY_MAX_TASKS = 6
AUTISM_MAX_TASKS = 3

STYLE_SENSORY_SAFE = "sensory-safe"
STYLE_DYSLEXIA = "dyslexia-mode"
STYLE_MOTOR = "motor-friendly"
STYLE_ADHD = "adhd-mode"
STYLE_AUTISM = "autism-mode"

KNOWN_STYLE_TAGS: tuple[str, ...] = (
    STYLE_SENSORY_SAFE,
    STYLE_DYSLEXIA,
    STYLE_MOTOR,
    STYLE_ADHD,
    STYLE_AUTISM,
)

MESSAGE_LOW_ENERGY = "Minimum viable progress is enough today. Be gentle with yourself."
MESSAGE_HIGH_ENERGY = "Feeling energetic! Let's make great progress."
MESSAGE_DEFAULT = "You've got this!"

GRANULARITY_NORMAL = "normal"
GRANULARITY_DETAILED = "detailed"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass(frozen=True)
class ReadingMode:
    large_font: bool = False
    increased_spacing: bool = False
    one_section_at_a_time: bool = False
    highlight_current: bool = False
    dyslexia_font: bool = False


@dataclass(frozen=True)
class SensoryMode:
    reduce_motion: bool = False
    muted_colors: bool = False
    no_flashing: bool = False


@dataclass(frozen=True)
class ExperienceProfile:
    """Resolved, read-only configuration. Never persisted."""

    default_timer_minutes: int
    max_tasks_today: int
    show_quick_start: bool
    micro_steps_granularity: str
    show_ending_soon_banner: bool
    untimed: bool
    math_step_mode: bool
    body_classes: tuple[str, ...]
    large_buttons: bool
    reduced_choices: bool
    consistent_layout: bool
    reading_mode: ReadingMode
    sensory_mode: SensoryMode
    energy_message: str
    active_modes: tuple[SupportMode, ...]

    @property
    def detailed_micro_steps(self) -> bool:
        return self.micro_steps_granularity == GRANULARITY_DETAILED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "default_timer_minutes": self.default_timer_minutes,
            "max_tasks_today": self.max_tasks_today,
            "show_quick_start": self.show_quick_start,
            "micro_steps_granularity": self.micro_steps_granularity,
            "show_ending_soon_banner": self.show_ending_soon_banner,
            "untimed": self.untimed,
            "math_step_mode": self.math_step_mode,
            "body_classes": list(self.body_classes),
            "large_buttons": self.large_buttons,
            "reduced_choices": self.reduced_choices,
            "consistent_layout": self.consistent_layout,
            "reading_mode": {
                "large_font": self.reading_mode.large_font,
                "increased_spacing": self.reading_mode.increased_spacing,
                "one_section_at_a_time": self.reading_mode.one_section_at_a_time,
                "highlight_current": self.reading_mode.highlight_current,
                "dyslexia_font": self.reading_mode.dyslexia_font,
            },
            "sensory_mode": {
                "reduce_motion": self.sensory_mode.reduce_motion,
                "muted_colors": self.sensory_mode.muted_colors,
                "no_flashing": self.sensory_mode.no_flashing,
            },
            "energy_message": self.energy_message,
            "active_modes": [m.value for m in self.active_modes],
        }


# =============================================================================
# DERIVATION
# =============================================================================


def _resolve_timer(
    preset: int, energy: EnergyLevel, has_adhd: bool, has_fatigue: bool
) -> int:
    minutes = preset
    if has_adhd and energy != EnergyLevel.LOW:
        minutes = ADHD_TIMER_MINUTES
    if energy == EnergyLevel.LOW or has_fatigue:
        minutes = min(minutes, LOW_ENERGY_TIMER_CEILING)
    if energy == EnergyLevel.HIGH and not has_fatigue:
        minutes = max(minutes, HIGH_ENERGY_TIMER_FLOOR)
    return minutes


def _resolve_max_tasks(energy: EnergyLevel, has_autism: bool, has_fatigue: bool) -> int:
    max_tasks = DEFAULT_MAX_TASKS
    if energy == EnergyLevel.LOW or has_fatigue:
        max_tasks = LOW_ENERGY_MAX_TASKS
    elif energy == EnergyLevel.HIGH:
        max_tasks = HIGH_ENERGY_MAX_TASKS
    if has_autism and max_tasks > AUTISM_MAX_TASKS:
        max_tasks = AUTISM_MAX_TASKS
    return max_tasks


def _energy_message(energy: EnergyLevel, has_fatigue: bool) -> str:
    if energy == EnergyLevel.LOW or has_fatigue:
        return MESSAGE_LOW_ENERGY
    if energy == EnergyLevel.HIGH:
        return MESSAGE_HIGH_ENERGY
    return MESSAGE_DEFAULT


def derive_profile(
    preferences: UserPreferences, energy_level: EnergyLevel
) -> ExperienceProfile:
    """Derive the experience profile for the given inputs.

    Args:
        preferences: Saved user preferences
        energy_level: Today's energy level

    Returns:
        A complete ExperienceProfile. Equal inputs give equal profiles.
        Plain-string modes and energy are accepted; unknown modes are dropped.
    """
    active_modes = tuple(parse_modes(preferences.selected_modes))
    energy_level = parse_energy(energy_level)
    modes = set(active_modes)
    has_dyslexia = SupportMode.DYSLEXIA in modes
    has_adhd = SupportMode.ADHD in modes
    has_autism = SupportMode.AUTISM in modes
    has_dyscalculia = SupportMode.DYSCALCULIA in modes
    has_sensory = SupportMode.SENSORY_SAFE in modes
    has_motor = SupportMode.MOTOR_DIFFICULTIES in modes
    has_fatigue = SupportMode.CHRONIC_FATIGUE in modes

    body_classes: list[str] = []
    if has_sensory or preferences.sensory_reduce_motion:
        body_classes.append(STYLE_SENSORY_SAFE)
    if has_dyslexia:
        body_classes.append(STYLE_DYSLEXIA)
    if has_motor or preferences.motor_large_buttons:
        body_classes.append(STYLE_MOTOR)
    if has_adhd:
        body_classes.append(STYLE_ADHD)
    if has_autism:
        body_classes.append(STYLE_AUTISM)

    return ExperienceProfile(
        default_timer_minutes=_resolve_timer(
            preferences.timer_preset, energy_level, has_adhd, has_fatigue
        ),
        max_tasks_today=_resolve_max_tasks(energy_level, has_autism, has_fatigue),
        show_quick_start=has_adhd,
        micro_steps_granularity=GRANULARITY_DETAILED if has_adhd else GRANULARITY_NORMAL,
        show_ending_soon_banner=has_autism,
        untimed=has_dyscalculia,
        math_step_mode=has_dyscalculia,
        body_classes=tuple(body_classes),
        large_buttons=has_motor or preferences.motor_large_buttons,
        reduced_choices=has_autism,
        consistent_layout=has_autism,
        reading_mode=ReadingMode(
            large_font=has_dyslexia or preferences.reading_large_font,
            increased_spacing=has_dyslexia or preferences.reading_increased_spacing,
            one_section_at_a_time=has_dyslexia
            or preferences.reading_one_section_at_a_time,
            highlight_current=preferences.reading_highlight_current,
            dyslexia_font=has_dyslexia,
        ),
        sensory_mode=SensoryMode(
            reduce_motion=has_sensory or preferences.sensory_reduce_motion,
            muted_colors=has_sensory,
            no_flashing=has_sensory,
        ),
        energy_message=_energy_message(energy_level, has_fatigue),
        active_modes=active_modes,
    )


# =============================================================================
# STYLE RECONCILIATION
# =============================================================================


@dataclass(frozen=True)
class StyleRoot:
    """Class set currently applied to the UI root."""

    classes: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class StyleChange:
    root: StyleRoot
    added: frozenset[str]
    removed: frozenset[str]


def reconcile_style_tags(root: StyleRoot, desired: Iterable[str]) -> StyleChange:
    """Replace the known style tags on root with exactly the desired ones.

    Classes that are not style tags are left untouched.
    """
    desired_tags = frozenset(tag for tag in desired if tag in KNOWN_STYLE_TAGS)
    current_tags = root.classes & frozenset(KNOWN_STYLE_TAGS)
    cleared = root.classes - frozenset(KNOWN_STYLE_TAGS)
    return StyleChange(
        root=StyleRoot(classes=cleared | desired_tags),
        added=desired_tags - current_tags,
        removed=current_tags - desired_tags,
    )


def apply_profile_styles(root: StyleRoot, profile: ExperienceProfile) -> StyleChange:
    """Reconcile root against the profile's style tags."""
    return reconcile_style_tags(root, profile.body_classes)
