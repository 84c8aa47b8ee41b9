"""Support modes and energy levels.

Support modes are set-membership tags: a student may enable any subset.
Values coming from storage or the API are parsed leniently: unknown tags
are dropped so that profile derivation stays total.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

import structlog

logger = structlog.get_logger(__name__)


class SupportMode(str, Enum):
    """Accessibility / learning-need tags."""

    DYSLEXIA = "dyslexia"
    ADHD = "adhd"
    SENSORY_SAFE = "sensory_safe"
    AUTISM = "autism"
    DYSCALCULIA = "dyscalculia"
    MOTOR_DIFFICULTIES = "motor_difficulties"
    CHRONIC_FATIGUE = "chronic_fatigue"


class EnergyLevel(str, Enum):
    """Today's self-reported energy."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


DEFAULT_ENERGY = EnergyLevel.NORMAL


def parse_mode(value: str | SupportMode) -> SupportMode | None:
    """Parse a single mode tag, returning None if unrecognised."""
    if isinstance(value, SupportMode):
        return value
    try:
        return SupportMode(str(value).strip().lower())
    except ValueError:
        logger.debug("unknown_support_mode_ignored", value=value)
        return None


def parse_modes(values: Iterable[str | SupportMode] | None) -> list[SupportMode]:
    """Parse mode tags, dropping unknown values and duplicates.

    Order of first appearance is preserved.
    """
    modes: list[SupportMode] = []
    for value in values or []:
        mode = parse_mode(value)
        if mode is not None and mode not in modes:
            modes.append(mode)
    return modes


def parse_energy(value: str | EnergyLevel | None) -> EnergyLevel:
    """Parse an energy level, falling back to normal."""
    if isinstance(value, EnergyLevel):
        return value
    if not value:
        return DEFAULT_ENERGY
    try:
        return EnergyLevel(str(value).strip().lower())
    except ValueError:
        logger.debug("unknown_energy_level", value=value)
        return DEFAULT_ENERGY
