"""Markdown prompt files.

Tutor mode blocks, greetings and the notes system prompt live under
prompts/ at the project root, one file per key ("tutor/mode_adhd" is
prompts/tutor/mode_adhd.md). Placeholders are written {name}; any other
brace (the JSON example in notes/system) is literal text.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent.parent.parent / "prompts"

_PLACEHOLDER = re.compile(r"\{([a-z_]+)\}")


def _path_for(key: str) -> Path:
    return PROMPTS_DIR / f"{key}.md"


@lru_cache(maxsize=64)
def _load(key: str) -> str:
    path = _path_for(key)
    if not path.is_file():
        raise FileNotFoundError(f"Prompt not found: {key} (looked at {path})")
    return path.read_text(encoding="utf-8").strip()


def render(template: str, variables: dict[str, object]) -> str:
    """Fill {name} placeholders; unknown placeholders are kept and logged."""
    missing: list[str] = []

    def _fill(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        missing.append(name)
        return match.group(0)

    text = _PLACEHOLDER.sub(_fill, template)
    if missing:
        logger.warning("prompt_placeholders_unfilled", names=missing)
    return text


def get_prompt(key: str, **variables: object) -> str:
    """Load the prompt stored under key and fill its placeholders.

    Raises:
        FileNotFoundError: If there is no file for key
    """
    return render(_load(key), variables)


def has_prompt(key: str) -> bool:
    return _path_for(key).is_file()


def list_prompts(prefix: str = "") -> list[str]:
    """Sorted prompt keys, optionally only those under a prefix ("tutor/")."""
    if not PROMPTS_DIR.exists():
        logger.warning("prompts_dir_not_found", path=str(PROMPTS_DIR))
        return []

    keys = (
        path.relative_to(PROMPTS_DIR).with_suffix("").as_posix()
        for path in PROMPTS_DIR.rglob("*.md")
    )
    return sorted(key for key in keys if key.startswith(prefix))


def clear_cache() -> None:
    _load.cache_clear()
