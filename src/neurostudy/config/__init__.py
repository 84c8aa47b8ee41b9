"""Configuration package for NeuroStudy."""

from neurostudy.config.app_config import (
    AppConfig,
    PlannerConfig,
    ProviderConfig,
    get_provider_config,
    load_app_config,
)
from neurostudy.config.support_modes import (
    SupportModeInfo,
    get_mode_info,
    list_mode_info,
    load_support_modes,
)

__all__ = [
    "AppConfig",
    "PlannerConfig",
    "ProviderConfig",
    "get_provider_config",
    "load_app_config",
    "SupportModeInfo",
    "get_mode_info",
    "list_mode_info",
    "load_support_modes",
]
