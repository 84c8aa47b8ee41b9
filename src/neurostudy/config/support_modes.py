"""Support mode catalog loader.

Loads the human-facing description of each support mode (label, subtitle,
feature list) from data/config/support_modes_v1.yaml.

Usage:
    from neurostudy.config.support_modes import get_mode_info, list_mode_info

    info = get_mode_info("adhd")
    catalog = list_mode_info()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog
import yaml

from neurostudy.core.modes import SupportMode, parse_mode

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
SUPPORT_MODES_FILE = Path("data/config/support_modes_v1.yaml")


@dataclass
class SupportModeInfo:
    """Display metadata for a support mode."""

    mode: SupportMode
    label: str
    subtitle: str = ""
    description: str = ""
    icon: str = ""
    features: list[str] = field(default_factory=list)


# Module-level cache
_cached_modes: dict[SupportMode, SupportModeInfo] | None = None


def _get_default_catalog() -> dict[SupportMode, SupportModeInfo]:
    """Get a minimal catalog when the config file is missing."""
    return {
        mode: SupportModeInfo(mode=mode, label=mode.value.replace("_", " ").title())
        for mode in SupportMode
    }


def load_support_modes(force_reload: bool = False) -> dict[SupportMode, SupportModeInfo]:
    """Load the support mode catalog.

    Entries for unknown modes in the file are skipped. Modes missing from
    the file get a generated label so the catalog is always complete.

    Args:
        force_reload: If True, ignore cache and reload from file.

    Returns:
        Dictionary mapping SupportMode to SupportModeInfo, in enum order.
    """
    global _cached_modes

    if _cached_modes is not None and not force_reload:
        return _cached_modes

    if not SUPPORT_MODES_FILE.exists():
        logger.warning("support_modes_file_not_found", path=str(SUPPORT_MODES_FILE))
        _cached_modes = _get_default_catalog()
        return _cached_modes

    try:
        data = yaml.safe_load(SUPPORT_MODES_FILE.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, OSError) as e:
        logger.error("failed_to_load_support_modes", error=str(e))
        _cached_modes = _get_default_catalog()
        return _cached_modes

    parsed: dict[SupportMode, SupportModeInfo] = {}
    for key, mdata in (data.get("modes") or {}).items():
        mode = parse_mode(key)
        if mode is None:
            continue
        parsed[mode] = SupportModeInfo(
            mode=mode,
            label=mdata.get("label", key),
            subtitle=mdata.get("subtitle", ""),
            description=mdata.get("description", ""),
            icon=mdata.get("icon", ""),
            features=list(mdata.get("features", [])),
        )

    defaults = _get_default_catalog()
    _cached_modes = {mode: parsed.get(mode, defaults[mode]) for mode in SupportMode}
    logger.debug("loaded_support_modes", count=len(parsed))
    return _cached_modes


def get_mode_info(mode: str | SupportMode) -> SupportModeInfo | None:
    """Get catalog entry for one mode, or None if the tag is unknown."""
    parsed = parse_mode(mode)
    if parsed is None:
        return None
    return load_support_modes()[parsed]


def list_mode_info() -> list[SupportModeInfo]:
    """List all catalog entries in canonical order."""
    return list(load_support_modes().values())


def clear_support_modes_cache() -> None:
    """Clear the catalog cache."""
    global _cached_modes
    _cached_modes = None
