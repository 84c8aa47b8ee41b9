"""Application configuration.

data/config/app_config_v1.yaml (relative to the working directory) has
three sections:

- providers: OpenAI-compatible endpoints, keyed by name. API keys are never
  stored in the file, only the environment variable that holds them.
- planner: what a daily plan is built from (board, grade, subjects).
- paths: where local state and the SQLite database live.

Without the file, the built-in defaults below apply. A file that leaves out
a section gets that section's defaults, except providers: listing any
provider replaces the whole default table.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

CONFIG_FILE = Path("data/config/app_config_v1.yaml")

DEFAULT_STATE_DIR = "data/state"
DEFAULT_DB_PATH = "db/neurostudy.db"


@dataclass
class ProviderConfig:
    """One OpenAI-compatible endpoint."""

    base_url: str | None
    default_model: str
    api_key_env: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProviderConfig:
        return cls(
            base_url=data.get("base_url"),
            default_model=data.get("default_model", "default"),
            api_key_env=data.get("api_key_env"),
        )

    def get_api_key(self) -> str | None:
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


DEFAULT_PROVIDERS: dict[str, ProviderConfig] = {
    "gateway": ProviderConfig(
        base_url="https://ai.gateway.lovable.dev/v1",
        default_model="google/gemini-2.5-flash",
        api_key_env="AI_GATEWAY_API_KEY",
    ),
    "lmstudio": ProviderConfig(
        base_url="http://localhost:1234/v1",
        default_model="llama-3.2-3b-instruct",
    ),
    "openai": ProviderConfig(
        base_url=None,
        default_model="gpt-4o-mini",
        api_key_env="OPENAI_API_KEY",
    ),
}


@dataclass
class PlannerConfig:
    """Inputs to daily task selection."""

    default_provider: str = "gateway"
    fallback_subjects: list[str] = field(
        default_factory=lambda: ["Mathematics", "English", "Science"]
    )
    default_board: str = "CBSE"
    default_grade: int = 8
    chapter_limit: int = 20

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlannerConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("planner_config_unknown_keys", keys=unknown)

        planner = cls(**{k: v for k, v in data.items() if k in known})
        planner.fallback_subjects = [str(s) for s in planner.fallback_subjects]
        planner.default_grade = int(planner.default_grade)
        planner.chapter_limit = int(planner.chapter_limit)
        return planner


@dataclass
class AppConfig:
    providers: dict[str, ProviderConfig] = field(
        default_factory=lambda: dict(DEFAULT_PROVIDERS)
    )
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def state_dir(self) -> Path:
        return Path(self.paths.get("state_dir", DEFAULT_STATE_DIR))

    @property
    def db_path(self) -> Path:
        return Path(self.paths.get("db_path", DEFAULT_DB_PATH))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        providers = {
            name: ProviderConfig.from_dict(entry or {})
            for name, entry in (data.get("providers") or {}).items()
        }
        return cls(
            providers=providers,
            planner=PlannerConfig.from_dict(data.get("planner") or {}),
            paths={k: str(v) for k, v in (data.get("paths") or {}).items()},
        )


_cached_config: AppConfig | None = None


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Return the application config, reading the YAML file once.

    Args:
        force_reload: Re-read the file even if a cached config exists.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        _cached_config = AppConfig.from_dict(data)
    else:
        logger.info("using_default_config")
        _cached_config = AppConfig()

    return _cached_config


def get_provider_config(provider: str) -> ProviderConfig | None:
    """Config for a named provider ("gateway", "lmstudio", ...), or None."""
    return load_app_config().providers.get(provider)


def clear_config_cache() -> None:
    global _cached_config
    _cached_config = None
