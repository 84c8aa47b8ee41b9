"""Tests for notes generation and upload handling."""

import json
from unittest.mock import MagicMock

import fitz
import pytest

from neurostudy.core.notes_generator import (
    DETAIL_INSTRUCTIONS,
    MAX_INPUT_CHARS,
    NOTES_QUOTA_MESSAGE,
    NOTES_RATE_LIMIT_MESSAGE,
    NOTES_TOO_LARGE_MESSAGE,
    PDF_EMPTY_MESSAGE,
    UNPARSEABLE_NOTES_POINT,
    DetailLevel,
    EmptyContentError,
    UploadValidationError,
    build_notes_user_prompt,
    extract_text,
    generate_notes,
    notes_error_message,
    style_instructions_for,
    validate_upload,
)
from neurostudy.llm.client import (
    GatewayError,
    GatewayInputTooLargeError,
    GatewayQuotaError,
    GatewayRateLimitError,
    LLMClient,
    LLMConfig,
    LLMResponse,
)
from neurostudy.utils.text_utils import TRUNCATION_MARKER

VALID_NOTES = {
    "summary": "Plants make food.",
    "notes": {
        "keyPoints": ["Photosynthesis"],
        "mainThemes": ["Energy"],
        "importantDetails": ["Chlorophyll"],
        "actionItems": [],
    },
}


@pytest.fixture
def mock_client():
    """LLMClient whose chat() returns canned content without network access."""
    client = LLMClient(LLMConfig(base_url="http://localhost:1/v1"))
    client.chat = MagicMock(
        return_value=LLMResponse(content=json.dumps(VALID_NOTES), model="m", provider="test")
    )
    return client


class TestUploadValidation:
    """Tests for validate_upload / extract_text."""

    def test_accepts_known_types(self):
        assert validate_upload("notes.TXT", 10) == ".txt"
        assert validate_upload("a.md", 10) == ".md"
        assert validate_upload("a.pdf", 10) == ".pdf"

    def test_rejects_large_file(self):
        with pytest.raises(UploadValidationError, match="File size must be less than 5MB"):
            validate_upload("a.txt", 5 * 1024 * 1024 + 1)

    def test_rejects_unknown_type(self):
        with pytest.raises(UploadValidationError, match=r"Only \.txt, \.md, and \.pdf"):
            validate_upload("a.docx", 10)

    def test_extract_text_file(self):
        assert extract_text("a.md", "# Hello".encode()) == "# Hello"

    def test_extract_pdf(self):
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Cells are the unit of life")
        data = doc.tobytes()
        doc.close()

        assert "Cells are the unit of life" in extract_text("bio.pdf", data)

    def test_unreadable_pdf(self):
        assert extract_text("bad.pdf", b"not a pdf") == PDF_EMPTY_MESSAGE


class TestPrompts:
    """Tests for style and detail instructions."""

    def test_style_precedence(self):
        assert style_instructions_for(["sensory_safe", "adhd", "dyslexia"]).startswith("Use short sentences")
        assert style_instructions_for(["sensory_safe", "adhd"]).startswith("Be concise")
        assert style_instructions_for(["sensory_safe"]).startswith("Use calm")
        assert style_instructions_for(["autism"]) == ""

    def test_user_prompt_mentions_truncation(self):
        assert "truncated" in build_notes_user_prompt("x", truncated=True)
        assert "truncated" not in build_notes_user_prompt("x", truncated=False)


class TestGenerateNotes:
    """Tests for generate_notes."""

    def test_empty_content(self, mock_client):
        with pytest.raises(EmptyContentError, match="No content provided"):
            generate_notes("   ", client=mock_client)

    def test_parses_json(self, mock_client):
        result = generate_notes("Photosynthesis text", client=mock_client)

        assert result.summary == "Plants make food."
        assert result.notes.key_points == ["Photosynthesis"]
        assert result.to_dict()["notes"]["actionItems"] == []
        assert result.truncated is False

    def test_request_shape(self, mock_client):
        generate_notes("Body", detail_level="brief", modes=["adhd"], client=mock_client)

        messages = mock_client.chat.call_args.args[0]
        assert messages[0].role == "system"
        assert DETAIL_INSTRUCTIONS[DetailLevel.BRIEF] in messages[0].content
        assert "Quick Start" in messages[0].content
        assert messages[1].content.startswith(
            "Please summarize and create notes from the following content."
        )
        assert mock_client.chat.call_args.kwargs["temperature"] == 0.3

    def test_unknown_detail_level_is_standard(self, mock_client):
        generate_notes("Body", detail_level="extreme", client=mock_client)
        system = mock_client.chat.call_args.args[0][0].content
        assert DETAIL_INSTRUCTIONS[DetailLevel.STANDARD] in system

    def test_fenced_json(self, mock_client):
        mock_client.chat.return_value = LLMResponse(
            content="```json\n" + json.dumps(VALID_NOTES) + "\n```", model="m", provider="t"
        )
        assert generate_notes("x", client=mock_client).summary == "Plants make food."

    def test_unparseable_fallback(self, mock_client):
        mock_client.chat.return_value = LLMResponse(content="Just prose.", model="m", provider="t")
        result = generate_notes("x", client=mock_client)

        assert result.summary == "Just prose."
        assert result.notes.key_points == [UNPARSEABLE_NOTES_POINT]
        assert result.notes.main_themes == []

    def test_truncates_large_input(self, mock_client):
        content = "a" * (MAX_INPUT_CHARS + 1000)
        result = generate_notes(content, client=mock_client)

        sent = mock_client.chat.call_args.args[0][1].content
        assert result.truncated is True
        assert result.original_length == len(content)
        assert TRUNCATION_MARKER in sent
        assert "NOTE: The content was truncated" in sent

    def test_gateway_error_propagates(self, mock_client):
        mock_client.chat.side_effect = GatewayRateLimitError("429")
        with pytest.raises(GatewayRateLimitError):
            generate_notes("x", client=mock_client)


class TestNotesErrorMessage:
    """Tests for notes_error_message."""

    def test_messages(self):
        assert notes_error_message(GatewayRateLimitError("x")) == NOTES_RATE_LIMIT_MESSAGE
        assert notes_error_message(GatewayQuotaError("x")) == NOTES_QUOTA_MESSAGE
        assert notes_error_message(GatewayInputTooLargeError("x")) == NOTES_TOO_LARGE_MESSAGE

    def test_generic(self):
        assert notes_error_message(GatewayError("boom")) == "AI Gateway error: boom"
        assert notes_error_message(GatewayError("AI Gateway error: 503 down")) == "AI Gateway error: 503 down"
