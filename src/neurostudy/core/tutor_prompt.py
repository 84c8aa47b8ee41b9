"""AI tutor prompt builder.

One definition serves two call sites:
- build_system_prompt(): the governing system prompt sent to the AI gateway
- build_greeting(): the first assistant message shown when the chat opens

Mode blocks are appended in MODE_PROMPT_ORDER. Modes without a tutor
block (motor_difficulties, chronic_fatigue) add nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from neurostudy.core.modes import SupportMode, parse_modes
from neurostudy.prompts.registry import get_prompt, has_prompt

MODE_PROMPT_ORDER: tuple[SupportMode, ...] = (
    SupportMode.DYSLEXIA,
    SupportMode.ADHD,
    SupportMode.SENSORY_SAFE,
    SupportMode.DYSCALCULIA,
    SupportMode.AUTISM,
)


@dataclass(frozen=True)
class ChapterContext:
    """Chapter the student is currently reading."""

    title: str
    summary: str = ""
    key_points: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ChapterContext | None:
        """Build from the camelCase API shape ({title, summary, keyPoints})."""
        if not data:
            return None
        key_points = data.get("keyPoints", data.get("key_points")) or []
        return cls(
            title=data.get("title", ""),
            summary=data.get("summary") or "",
            key_points=tuple(key_points),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "summary": self.summary,
            "keyPoints": list(self.key_points),
        }


def mode_block(mode: SupportMode) -> str:
    """Instruction block for a single mode."""
    return get_prompt(f"tutor/mode_{mode.value}")


def build_system_prompt(
    active_modes: Iterable[str | SupportMode],
    chapter_context: ChapterContext | None = None,
) -> str:
    """Assemble the tutor system prompt.

    Args:
        active_modes: Selected modes; unknown tags are ignored
        chapter_context: Optional chapter the student is studying

    Returns:
        Preamble, one block per active mode, chapter context, guidelines.
    """
    modes = set(parse_modes(active_modes))

    sections = [get_prompt("tutor/preamble")]
    sections.extend(mode_block(mode) for mode in MODE_PROMPT_ORDER if mode in modes)

    if chapter_context is not None:
        sections.append(
            get_prompt(
                "tutor/chapter_context",
                title=chapter_context.title,
                summary=chapter_context.summary,
                key_points=", ".join(chapter_context.key_points),
            )
        )

    sections.append(get_prompt("tutor/guidelines"))
    return "\n\n".join(sections)


def build_greeting(
    active_modes: Iterable[str | SupportMode],
    chapter_context: ChapterContext | None = None,
) -> str:
    """Opening assistant message for a new tutor chat.

    The first active mode in MODE_PROMPT_ORDER that has a greeting prompt
    wins; otherwise the default greeting is used.
    """
    modes = set(parse_modes(active_modes))

    greeting = get_prompt("tutor/greeting_default")
    for mode in MODE_PROMPT_ORDER:
        key = f"tutor/greeting_{mode.value}"
        if mode in modes and has_prompt(key):
            greeting = get_prompt(key)
            break

    if chapter_context is not None:
        greeting += "\n\n" + get_prompt("tutor/greeting_chapter", title=chapter_context.title)

    return greeting
