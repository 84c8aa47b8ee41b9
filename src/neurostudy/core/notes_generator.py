"""Notes generation module.

Responsibilities:
- Validate uploaded study material (size, type) before any processing
- Extract plain text from .txt / .md / .pdf files
- Summarise content into structured notes with the LLM

Output structure (JSON):
{
  "summary": "...",
  "notes": {"keyPoints": [], "mainThemes": [], "importantDetails": [], "actionItems": []}
}

Very large inputs are truncated (start + end kept) before they reach the
model. If the model output cannot be parsed, the raw text becomes the
summary and the notes carry a single placeholder key point.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

import fitz  # PyMuPDF
import structlog

from neurostudy.core.modes import SupportMode, parse_modes
from neurostudy.llm.client import (
    GatewayError,
    GatewayInputTooLargeError,
    GatewayQuotaError,
    GatewayRateLimitError,
    LLMClient,
    Message,
)
from neurostudy.prompts.registry import get_prompt
from neurostudy.utils.text_utils import truncate_head_tail

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
ACCEPTED_EXTENSIONS = (".txt", ".md", ".pdf")
MAX_INPUT_CHARS = 350_000
NOTES_TEMPERATURE = 0.3

PDF_EMPTY_MESSAGE = "PDF content could not be extracted. Please try a .txt or .md file."
UNPARSEABLE_NOTES_POINT = "Unable to parse structured notes"

# First matching mode wins
STYLE_INSTRUCTIONS: tuple[tuple[SupportMode, str], ...] = (
    (
        SupportMode.DYSLEXIA,
        "Use short sentences. Simple words. Add extra line breaks between points. "
        "Use bullet points extensively.",
    ),
    (
        SupportMode.ADHD,
        "Be concise and action-oriented. Use bold for key points. "
        'Include a "Quick Start" section at the top.',
    ),
    (
        SupportMode.SENSORY_SAFE,
        "Use calm, neutral language. Avoid exclamation marks or urgent phrasing.",
    ),
)


class DetailLevel(str, Enum):
    BRIEF = "brief"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"


DETAIL_INSTRUCTIONS = {
    DetailLevel.BRIEF: "Keep the summary to 1 paragraph. Notes should have only 3-5 key points total.",
    DetailLevel.STANDARD: "Provide a balanced summary (2-3 paragraphs). Notes should have 5-7 points per section.",
    DetailLevel.COMPREHENSIVE: "Provide an extensive summary (3-4 paragraphs). Notes should be very detailed with 10+ points per section.",
}


# =============================================================================
# ERRORS
# =============================================================================


class UploadValidationError(Exception):
    """Uploaded file rejected before processing."""


class NotesGenerationError(Exception):
    """Error during notes generation."""


class EmptyContentError(NotesGenerationError):
    """No content to summarise."""

    def __init__(self):
        super().__init__("No content provided")


NOTES_RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
NOTES_QUOTA_MESSAGE = "API credits exhausted. Please add credits to continue."
NOTES_TOO_LARGE_MESSAGE = (
    "This file is too large to summarize at once. Please upload a smaller "
    "file or split the content into multiple parts."
)


def notes_error_message(error: GatewayError) -> str:
    """User-facing message for an upstream failure while summarising."""
    if isinstance(error, GatewayRateLimitError):
        return NOTES_RATE_LIMIT_MESSAGE
    if isinstance(error, GatewayQuotaError):
        return NOTES_QUOTA_MESSAGE
    if isinstance(error, GatewayInputTooLargeError):
        return NOTES_TOO_LARGE_MESSAGE
    message = str(error)
    if message.startswith("AI Gateway error"):
        return message
    return f"AI Gateway error: {message}"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class StructuredNotes:
    key_points: list[str] = field(default_factory=list)
    main_themes: list[str] = field(default_factory=list)
    important_details: list[str] = field(default_factory=list)
    action_items: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "keyPoints": self.key_points,
            "mainThemes": self.main_themes,
            "importantDetails": self.important_details,
            "actionItems": self.action_items,
        }


@dataclass
class NotesResult:
    summary: str
    notes: StructuredNotes
    truncated: bool = False
    original_length: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"summary": self.summary, "notes": self.notes.to_dict()}


# =============================================================================
# UPLOAD HANDLING
# =============================================================================


def validate_upload(filename: str, size: int) -> str:
    """Check size and type of an uploaded file.

    Returns:
        The lowercase file extension

    Raises:
        UploadValidationError: If the file is too large or of the wrong type
    """
    if size > MAX_FILE_SIZE:
        raise UploadValidationError("File size must be less than 5MB")

    extension = Path(filename).suffix.lower()
    if extension not in ACCEPTED_EXTENSIONS:
        raise UploadValidationError("Only .txt, .md, and .pdf files are accepted")

    return extension


def _extract_pdf_text(data: bytes) -> str:
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            pages = [page.get_text() for page in doc]
    except (fitz.FileDataError, RuntimeError) as e:
        logger.warning("pdf_extraction_failed", error=str(e))
        return PDF_EMPTY_MESSAGE
    text = "\n".join(pages).strip()
    return text or PDF_EMPTY_MESSAGE


def extract_text(filename: str, data: bytes) -> str:
    """Validate an upload and return its text content."""
    extension = validate_upload(filename, len(data))
    if extension == ".pdf":
        return _extract_pdf_text(data)
    return data.decode("utf-8", errors="replace")


def read_upload(path: Path) -> str:
    """Validate and read a file from disk."""
    return extract_text(path.name, path.read_bytes())


# =============================================================================
# PROMPTS
# =============================================================================


def style_instructions_for(modes: Iterable[str | SupportMode]) -> str:
    active = set(parse_modes(modes))
    for mode, instructions in STYLE_INSTRUCTIONS:
        if mode in active:
            return instructions
    return ""


def parse_detail_level(value: str | DetailLevel | None) -> DetailLevel:
    if isinstance(value, DetailLevel):
        return value
    try:
        return DetailLevel(value or DetailLevel.STANDARD.value)
    except ValueError:
        return DetailLevel.STANDARD


def build_notes_system_prompt(
    detail_level: DetailLevel, modes: Iterable[str | SupportMode]
) -> str:
    return get_prompt(
        "notes/system",
        style_instructions=style_instructions_for(modes),
        detail_instructions=DETAIL_INSTRUCTIONS[detail_level],
    )


def build_notes_user_prompt(content: str, truncated: bool) -> str:
    intro = "Please summarize and create notes from the following content.\n"
    if truncated:
        intro += (
            "NOTE: The content was truncated due to size. "
            "Summarize based on the excerpt and mention it's partial.\n\n"
        )
    else:
        intro += "\n"
    return intro + content


# =============================================================================
# RESPONSE PARSING
# =============================================================================


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def parse_notes_response(client: LLMClient, raw: str) -> tuple[str, StructuredNotes]:
    """Parse model output into (summary, notes), with a raw-text fallback."""
    parsed = client._try_parse_json(raw)
    if parsed is None:
        logger.warning("notes_parse_failed", preview=raw[:100])
        return raw, StructuredNotes(key_points=[UNPARSEABLE_NOTES_POINT])

    notes = parsed.get("notes")
    if not isinstance(notes, dict):
        notes = {}
    return str(parsed.get("summary", "")), StructuredNotes(
        key_points=_string_list(notes.get("keyPoints")),
        main_themes=_string_list(notes.get("mainThemes")),
        important_details=_string_list(notes.get("importantDetails")),
        action_items=_string_list(notes.get("actionItems")),
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def generate_notes(
    content: str,
    detail_level: str | DetailLevel = DetailLevel.STANDARD,
    modes: Iterable[str | SupportMode] = (),
    client: LLMClient | None = None,
) -> NotesResult:
    """Summarise study material into structured notes.

    Args:
        content: Source text
        detail_level: brief | standard | comprehensive
        modes: Active support modes (adjust writing style)
        client: LLM client (created from app config if not provided)

    Returns:
        NotesResult

    Raises:
        EmptyContentError: If content is blank
        GatewayError: Upstream failure (rate limit, quota, too large, ...)
    """
    if not content or not content.strip():
        raise EmptyContentError()

    level = parse_detail_level(detail_level)
    safe_content, truncated = truncate_head_tail(content, MAX_INPUT_CHARS)
    original_length = len(content.strip())

    if truncated:
        logger.info(
            "notes_input_truncated",
            original_length=original_length,
            length=len(safe_content),
        )
    else:
        logger.info("notes_input", length=original_length)

    if client is None:
        client = LLMClient()

    response = client.chat(
        [
            Message(role="system", content=build_notes_system_prompt(level, modes)),
            Message(role="user", content=build_notes_user_prompt(safe_content, truncated)),
        ],
        temperature=NOTES_TEMPERATURE,
    )

    if not response.content.strip():
        raise NotesGenerationError("No response from AI")

    summary, notes = parse_notes_response(client, response.content)
    return NotesResult(
        summary=summary,
        notes=notes,
        truncated=truncated,
        original_length=original_length,
    )
