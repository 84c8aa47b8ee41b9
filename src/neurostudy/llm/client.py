"""LLM client for the AI gateway.

Provides a unified interface for chat completions against any
OpenAI-compatible endpoint:

- gateway: hosted AI gateway (default)
- lmstudio: local LM Studio server
- openai: OpenAI API

Upstream failures are mapped to GatewayError subclasses so callers can
show a specific message for rate limits, exhausted credits and inputs that
exceed the model's context window.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Iterator, Literal

import openai
import structlog
from openai import OpenAI

from neurostudy.config.app_config import get_provider_config, load_app_config
from neurostudy.utils.text_utils import strip_think

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_PROVIDER = "gateway"

# Local servers accept any key
PLACEHOLDER_API_KEY = "not-needed"

FENCED_JSON_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

TOKEN_LIMIT_PATTERN = re.compile(
    r"token count exceeds|maximum number of tokens", re.IGNORECASE
)


# =============================================================================
# ERRORS
# =============================================================================


class GatewayError(Exception):
    """Error during an AI gateway call."""

    status_code = 500


class GatewayConnectionError(GatewayError):
    """Could not reach the gateway."""

    status_code = 502


class GatewayRateLimitError(GatewayError):
    """Gateway answered 429."""

    status_code = 429


class GatewayQuotaError(GatewayError):
    """Gateway answered 402 (credits exhausted)."""

    status_code = 402


class GatewayInputTooLargeError(GatewayError):
    """Prompt exceeded the model's token limit."""

    status_code = 413


class GatewayResponseError(GatewayError):
    """Gateway returned an unusable response."""


def map_upstream_error(error: Exception) -> GatewayError:
    """Translate an openai SDK exception into a GatewayError."""
    if isinstance(error, GatewayError):
        return error
    if isinstance(error, openai.APIConnectionError):
        return GatewayConnectionError(f"Could not reach AI gateway: {error}")
    if isinstance(error, openai.RateLimitError):
        return GatewayRateLimitError(str(error))
    if isinstance(error, openai.APIStatusError):
        if error.status_code == 402:
            return GatewayQuotaError(str(error))
        if error.status_code == 400 and TOKEN_LIMIT_PATTERN.search(str(error)):
            return GatewayInputTooLargeError(str(error))
        return GatewayError(f"AI Gateway error: {error.status_code} {error.message}")
    return GatewayError(f"AI Gateway error: {error}")


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: str = DEFAULT_PROVIDER
    base_url: str | None = None
    model: str = "google/gemini-2.5-flash"
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout: int = 120
    api_key: str | None = None

    @classmethod
    def from_app_config(cls, provider: str | None = None) -> LLMConfig:
        """Build configuration for a provider declared in app config."""
        if provider is None:
            provider = load_app_config().planner.default_provider

        pconfig = get_provider_config(provider)
        if pconfig is None:
            logger.warning("provider_not_configured", provider=provider)
            return cls(provider=provider)

        return cls(
            provider=provider,
            base_url=pconfig.base_url,
            model=pconfig.default_model,
            api_key=pconfig.get_api_key(),
        )


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for API call."""
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        return self.usage.get("total_tokens", 0)


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """Chat-completion client over the OpenAI SDK."""

    def __init__(self, config: LLMConfig | None = None):
        if config is None:
            config = LLMConfig.from_app_config()

        self.config = config
        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or PLACEHOLDER_API_KEY,
            timeout=self.config.timeout,
        )

        logger.info(
            "llm_client_initialized",
            provider=self.config.provider,
            model=self.config.model,
            base_url=self.config.base_url,
        )

    def _request(
        self,
        messages: list[Message],
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Send a chat completion request.

        Raises:
            GatewayError: Mapped upstream failure
        """
        start_time = time.time()
        try:
            response = self._client.chat.completions.create(
                **self._request(messages, temperature, max_tokens)
            )
        except openai.OpenAIError as e:
            raise map_upstream_error(e) from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise GatewayResponseError("No response from AI")

        content = response.choices[0].message.content or ""

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "llm_response",
            provider=self.config.provider,
            model=response.model,
            tokens=usage.get("total_tokens", 0),
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            model=response.model,
            provider=self.config.provider,
            usage=usage,
            latency_ms=latency_ms,
        )

    def chat_stream(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        """Stream content fragments as they arrive.

        Errors are raised, not swallowed: the caller decides what to do with
        a partially streamed answer.

        Raises:
            GatewayError: Mapped upstream failure (before or mid-stream)
        """
        try:
            stream = self._client.chat.completions.create(
                **self._request(messages, temperature, max_tokens), stream=True
            )
            for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except openai.OpenAIError as e:
            logger.warning("streaming_failed", error=str(e))
            raise map_upstream_error(e) from e

    def _try_parse_json(self, content: str) -> dict[str, Any] | None:
        """Parse a JSON object out of model output.

        Candidates, in order: the whole text, a ```json fenced block, the
        outermost {...} span. The first candidate that parses decides; a
        non-object result gives None. Thinking tags are stripped first.
        """
        content = strip_think(content)

        candidates = [content]
        fenced = FENCED_JSON_PATTERN.search(content)
        if fenced:
            candidates.append(fenced.group(1).strip())
        start, end = content.find("{"), content.rfind("}") + 1
        if start >= 0 and end > start:
            candidates.append(content[start:end])

        for candidate in candidates:
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            return parsed if isinstance(parsed, dict) else None
        return None
