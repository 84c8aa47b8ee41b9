"""AI tutor chat: streaming consumer and conversation state.

The tutor endpoint answers with Server-Sent-Events style lines:

    : keepalive comment          (ignored)
                                 (blank, ignored)
    data: {"choices":[{"delta":{"content":"Hel"}}]}
    data: [DONE]

A failure after the first fragment is sent as data: {"error": "..."}
in place of [DONE].

SSEDeltaParser turns raw chunks into content fragments, tolerating JSON
split across read boundaries. TutorChat owns one conversation: it appends
fragments to a single in-progress assistant message and, if the transport
fails, replaces that partial message with one error message.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Sequence

import httpx
import structlog

from neurostudy.core.modes import SupportMode, parse_modes
from neurostudy.core.tutor_prompt import ChapterContext, build_greeting
from neurostudy.llm.client import (
    GatewayError,
    GatewayQuotaError,
    GatewayRateLimitError,
)

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

TUTOR_RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
TUTOR_QUOTA_MESSAGE = "AI credits exhausted. Please try again later."
TUTOR_UNAVAILABLE_MESSAGE = "AI service temporarily unavailable"
FALLBACK_ERROR = "Failed to get response"
INCOMPLETE_STREAM_ERROR = "The response ended before it was complete"

DEFAULT_TIMEOUT = 120.0


class TutorStreamError(Exception):
    """The tutor endpoint failed or returned an unusable stream."""


def tutor_error_message(error: GatewayError) -> str:
    """User-facing message for an upstream failure on the tutor endpoint."""
    if isinstance(error, GatewayRateLimitError):
        return TUTOR_RATE_LIMIT_MESSAGE
    if isinstance(error, GatewayQuotaError):
        return TUTOR_QUOTA_MESSAGE
    return TUTOR_UNAVAILABLE_MESSAGE


def format_delta_event(content: str) -> str:
    """Encode one content fragment as an SSE data line."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"{DATA_PREFIX}{json.dumps(payload)}\n\n"


def format_done_event() -> str:
    return f"{DATA_PREFIX}{DONE_SENTINEL}\n\n"


def format_error_event(message: str) -> str:
    """Encode an upstream failure that happened after streaming began."""
    payload = {"error": message}
    return f"{DATA_PREFIX}{json.dumps(payload)}\n\n"


# =============================================================================
# SSE PARSER
# =============================================================================


class SSEDeltaParser:
    """Incremental parser for delta-content SSE streams.

    Feed it decoded text chunks in arrival order. A data line whose JSON
    does not parse is put back into the buffer and parsing pauses until
    the next chunk arrives. A data line carrying {"error": ...} raises
    TutorStreamError and ends the stream.
    """

    def __init__(self):
        self._buffer = ""
        self.done = False

    def feed(self, chunk: str) -> list[str]:
        """Consume a chunk and return the content fragments it completes."""
        if self.done:
            return []

        self._buffer += chunk
        fragments: list[str] = []

        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(":") or not line.strip():
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            payload = line[len(DATA_PREFIX):].strip()
            if payload == DONE_SENTINEL:
                self.done = True
                self._buffer = ""
                break

            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError:
                self._buffer = line + "\n" + self._buffer
                break

            error = _error_payload(parsed)
            if error is not None:
                self.done = True
                self._buffer = ""
                raise TutorStreamError(error)

            content = _delta_content(parsed)
            if content:
                fragments.append(content)

        return fragments


def _error_payload(parsed: Any) -> str | None:
    if not isinstance(parsed, dict) or not parsed.get("error"):
        return None
    error = parsed["error"]
    if isinstance(error, dict):
        return str(error.get("message") or FALLBACK_ERROR)
    return str(error)


def _delta_content(parsed: Any) -> str | None:
    if not isinstance(parsed, dict):
        return None
    choices = parsed.get("choices")
    if not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta") or {}
    content = delta.get("content")
    return content if isinstance(content, str) else None


def iter_deltas(chunks: Iterable[str]) -> Iterator[str]:
    """Yield content fragments from a stream of text chunks.

    Raises:
        TutorStreamError: On an error event, or if the chunks run out
            before [DONE]
    """
    parser = SSEDeltaParser()
    for chunk in chunks:
        yield from parser.feed(chunk)
        if parser.done:
            return
    logger.warning("tutor_stream_incomplete")
    raise TutorStreamError(INCOMPLETE_STREAM_ERROR)


# =============================================================================
# HTTP TRANSPORT
# =============================================================================

# A transport takes the request payload and yields content fragments.
Transport = Callable[[dict[str, Any]], Iterable[str]]


def http_transport(base_url: str, timeout: float = DEFAULT_TIMEOUT) -> Transport:
    """Transport that POSTs to a running tutor endpoint over httpx."""
    url = base_url.rstrip("/") + "/api/tutor/chat"

    def send(payload: dict[str, Any]) -> Iterator[str]:
        try:
            with httpx.Client(timeout=timeout) as client:
                with client.stream("POST", url, json=payload) as response:
                    if response.status_code >= 400:
                        response.read()
                        raise TutorStreamError(_error_from_response(response))
                    yield from iter_deltas(response.iter_text())
        except httpx.RequestError as e:
            logger.warning("tutor_request_failed", url=url, error=str(e))
            raise TutorStreamError(str(e)) from e

    return send


def _error_from_response(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return FALLBACK_ERROR
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return FALLBACK_ERROR


# =============================================================================
# CONVERSATION
# =============================================================================


@dataclass
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class TutorChat:
    """One tutor conversation, seeded with a mode-aware greeting."""

    modes: Sequence[SupportMode] = ()
    chapter_context: ChapterContext | None = None
    messages: list[ChatMessage] = field(default_factory=list)
    is_loading: bool = False

    def __post_init__(self):
        self.modes = tuple(parse_modes(self.modes))
        if not self.messages:
            self.messages.append(
                ChatMessage("assistant", build_greeting(self.modes, self.chapter_context))
            )

    def request_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "messages": [m.to_dict() for m in self.messages],
            "modes": [m.value for m in self.modes],
        }
        if self.chapter_context is not None:
            payload["chapterContext"] = self.chapter_context.to_dict()
        return payload

    def send(self, text: str, transport: Transport) -> str | None:
        """Send a user message and stream the reply into the conversation.

        Returns:
            The assistant reply, or None if the turn failed (an error
            message is appended in that case) or nothing was sent.
        """
        text = text.strip()
        if not text or self.is_loading:
            return None

        self.messages.append(ChatMessage("user", text))
        payload = self.request_payload()
        self.is_loading = True
        reply: ChatMessage | None = None

        try:
            for fragment in transport(payload):
                if reply is None:
                    reply = ChatMessage("assistant", "")
                    self.messages.append(reply)
                reply.content += fragment
        except (TutorStreamError, GatewayError, httpx.HTTPError) as e:
            logger.warning("tutor_turn_failed", error=str(e))
            if reply is not None:
                self.messages.remove(reply)
            self.messages.append(
                ChatMessage(
                    "assistant",
                    f"Sorry, I encountered an issue: {e}. Please try again.",
                )
            )
            return None
        finally:
            self.is_loading = False

        if reply is None:
            reply = ChatMessage("assistant", "")
            self.messages.append(reply)
        return reply.content
