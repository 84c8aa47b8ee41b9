"""Tests for the tutor system prompt, greeting and prompt registry."""

import pytest

from neurostudy.core.modes import SupportMode
from neurostudy.core.tutor_prompt import (
    ChapterContext,
    build_greeting,
    build_system_prompt,
    mode_block,
)
from neurostudy.prompts.registry import get_prompt, has_prompt, list_prompts, render

DYSLEXIA_HEADER = "DYSLEXIA ADAPTATIONS (CRITICAL - FOLLOW STRICTLY):"
ADHD_HEADER = "ADHD ADAPTATIONS (CRITICAL - FOLLOW STRICTLY):"
SENSORY_HEADER = "SENSORY-SAFE ADAPTATIONS:"
DYSCALCULIA_HEADER = "DYSCALCULIA ADAPTATIONS:"
AUTISM_HEADER = "AUTISM ADAPTATIONS:"


@pytest.fixture
def chapter():
    return ChapterContext(
        title="Rational Numbers",
        summary="Numbers of the form p/q.",
        key_points=("Closure", "Commutativity"),
    )


class TestPromptRegistry:
    """Tests for prompt file loading."""

    def test_lists_tutor_and_notes_prompts(self):
        keys = list_prompts()
        assert "tutor/preamble" in keys
        assert "notes/system" in keys

    def test_variable_substitution(self):
        text = get_prompt("tutor/greeting_chapter", title="Fractions")
        assert '"Fractions"' in text
        assert "{title}" not in text

    def test_missing_prompt_raises(self):
        with pytest.raises(FileNotFoundError):
            get_prompt("tutor/does_not_exist")

    def test_json_braces_survive(self):
        text = get_prompt("notes/system", style_instructions="", detail_instructions="x")
        assert '"keyPoints"' in text
        assert "{" in text

    def test_prefix_filter(self):
        keys = list_prompts("notes/")
        assert keys == ["notes/system"]

    def test_has_prompt(self):
        assert has_prompt("tutor/greeting_adhd")
        assert not has_prompt("tutor/greeting_autism")

    def test_unfilled_placeholder_kept(self):
        assert render("Hi {name}, see {title}", {"title": "Cells"}) == "Hi {name}, see Cells"

    def test_non_string_values(self):
        assert render("{count} tasks", {"count": 3}) == "3 tasks"


class TestBuildSystemPrompt:
    """Tests for build_system_prompt."""

    def test_no_modes_is_preamble_and_guidelines(self):
        prompt = build_system_prompt([])
        assert prompt == get_prompt("tutor/preamble") + "\n\n" + get_prompt("tutor/guidelines")

    def test_dyslexia_and_adhd(self):
        prompt = build_system_prompt(["dyslexia", "adhd"])

        assert DYSLEXIA_HEADER in prompt
        assert ADHD_HEADER in prompt
        assert SENSORY_HEADER not in prompt
        assert DYSCALCULIA_HEADER not in prompt
        assert AUTISM_HEADER not in prompt
        assert prompt.index(DYSLEXIA_HEADER) < prompt.index(ADHD_HEADER)

    def test_fixed_block_order(self):
        prompt = build_system_prompt(
            [
                SupportMode.AUTISM,
                SupportMode.DYSCALCULIA,
                SupportMode.SENSORY_SAFE,
                SupportMode.ADHD,
                SupportMode.DYSLEXIA,
            ]
        )
        positions = [
            prompt.index(h)
            for h in (DYSLEXIA_HEADER, ADHD_HEADER, SENSORY_HEADER, DYSCALCULIA_HEADER, AUTISM_HEADER)
        ]
        assert positions == sorted(positions)

    def test_modes_without_blocks_add_nothing(self):
        assert build_system_prompt(["motor_difficulties", "chronic_fatigue"]) == build_system_prompt([])

    def test_unknown_modes_ignored(self):
        assert build_system_prompt(["telepathy"]) == build_system_prompt([])

    def test_guidelines_last(self):
        prompt = build_system_prompt(["autism"])
        assert prompt.endswith(get_prompt("tutor/guidelines"))

    def test_chapter_context(self, chapter):
        prompt = build_system_prompt(["adhd"], chapter)

        assert "CURRENT CHAPTER CONTEXT:" in prompt
        assert "Title: Rational Numbers" in prompt
        assert "Key Points: Closure, Commutativity" in prompt
        assert prompt.index(ADHD_HEADER) < prompt.index("CURRENT CHAPTER CONTEXT:")

    def test_mode_block_is_shared_text(self):
        assert mode_block(SupportMode.DYSLEXIA) in build_system_prompt(["dyslexia"])


class TestBuildGreeting:
    """Tests for build_greeting."""

    def test_default(self):
        assert build_greeting([]) == "Hi! I'm your AI tutor. How can I help you today?"

    def test_dyslexia_wins_over_adhd(self):
        assert build_greeting(["adhd", "dyslexia"]) == get_prompt("tutor/greeting_dyslexia")

    def test_adhd_wins_over_sensory(self):
        assert build_greeting(["sensory_safe", "adhd"]) == get_prompt("tutor/greeting_adhd")

    def test_sensory(self):
        assert build_greeting(["sensory_safe"]) == get_prompt("tutor/greeting_sensory_safe")

    def test_chapter_suffix(self, chapter):
        greeting = build_greeting([], chapter)
        assert greeting.endswith(
            '\n\nI can see you\'re studying "Rational Numbers". '
            "Feel free to ask me anything about this chapter!"
        )


class TestChapterContext:
    """Tests for ChapterContext parsing."""

    def test_from_camel_case(self):
        ctx = ChapterContext.from_dict({"title": "T", "summary": "S", "keyPoints": ["a"]})
        assert ctx == ChapterContext("T", "S", ("a",))

    def test_from_none(self):
        assert ChapterContext.from_dict(None) is None

    def test_to_dict_round_trip(self, chapter):
        assert ChapterContext.from_dict(chapter.to_dict()) == chapter
