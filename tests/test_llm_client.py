"""Tests for LLM client module."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from neurostudy.llm.client import (
    GatewayConnectionError,
    GatewayError,
    GatewayInputTooLargeError,
    GatewayQuotaError,
    GatewayRateLimitError,
    GatewayResponseError,
    LLMClient,
    LLMConfig,
    Message,
    map_upstream_error,
)

REQUEST = httpx.Request("POST", "https://gateway.test/v1/chat/completions")


def status_error(cls, code, message="error"):
    return cls(message, response=httpx.Response(code, request=REQUEST), body=None)


def make_client() -> LLMClient:
    client = LLMClient(LLMConfig(provider="test", base_url="http://localhost:1/v1", model="m"))
    client._client = MagicMock()
    return client


def chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class TestLLMConfig:
    """Tests for LLMConfig."""

    def test_defaults(self):
        config = LLMConfig()
        assert config.provider == "gateway"
        assert config.model == "google/gemini-2.5-flash"
        assert config.temperature == 0.7

    def test_from_app_config_gateway(self):
        with patch.dict("os.environ", {"AI_GATEWAY_API_KEY": "secret"}):
            config = LLMConfig.from_app_config("gateway")
        assert config.base_url == "https://ai.gateway.lovable.dev/v1"
        assert config.api_key == "secret"

    def test_from_app_config_unknown_provider(self):
        config = LLMConfig.from_app_config("nope")
        assert config.provider == "nope"
        assert config.base_url is None


class TestMapUpstreamError:
    """Tests for map_upstream_error."""

    def test_rate_limit(self):
        error = map_upstream_error(status_error(openai.RateLimitError, 429))
        assert isinstance(error, GatewayRateLimitError)
        assert error.status_code == 429

    def test_quota(self):
        error = map_upstream_error(status_error(openai.APIStatusError, 402))
        assert isinstance(error, GatewayQuotaError)
        assert error.status_code == 402

    def test_token_limit(self):
        error = map_upstream_error(
            status_error(openai.BadRequestError, 400, "The input token count exceeds the maximum")
        )
        assert isinstance(error, GatewayInputTooLargeError)
        assert error.status_code == 413

    def test_plain_bad_request(self):
        error = map_upstream_error(status_error(openai.BadRequestError, 400, "bad"))
        assert type(error) is GatewayError
        assert str(error).startswith("AI Gateway error: 400")

    def test_connection(self):
        error = map_upstream_error(openai.APIConnectionError(request=REQUEST))
        assert isinstance(error, GatewayConnectionError)
        assert error.status_code == 502

    def test_passthrough(self):
        original = GatewayQuotaError("x")
        assert map_upstream_error(original) is original


class TestChat:
    """Tests for LLMClient.chat."""

    def test_chat_returns_content(self):
        client = make_client()
        client._client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Hello"))],
            model="m",
            usage=SimpleNamespace(prompt_tokens=3, completion_tokens=1, total_tokens=4),
        )

        response = client.chat([Message(role="user", content="Hi")], temperature=0.3)

        assert response.content == "Hello"
        assert response.total_tokens == 4
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]

    def test_chat_no_choices(self):
        client = make_client()
        client._client.chat.completions.create.return_value = SimpleNamespace(
            choices=[], model="m", usage=None
        )
        with pytest.raises(GatewayResponseError):
            client.chat([Message(role="user", content="Hi")])

    def test_chat_maps_errors(self):
        client = make_client()
        client._client.chat.completions.create.side_effect = status_error(openai.RateLimitError, 429)
        with pytest.raises(GatewayRateLimitError):
            client.chat([Message(role="user", content="Hi")])


class TestChatStream:
    """Tests for LLMClient.chat_stream."""

    def test_yields_fragments(self):
        client = make_client()
        client._client.chat.completions.create.return_value = iter(
            [chunk("Hel"), chunk(None), chunk("lo")]
        )
        assert list(client.chat_stream([Message(role="user", content="Hi")])) == ["Hel", "lo"]
        assert client._client.chat.completions.create.call_args.kwargs["stream"] is True

    def test_error_before_first_fragment(self):
        client = make_client()
        client._client.chat.completions.create.side_effect = status_error(openai.APIStatusError, 402)
        with pytest.raises(GatewayQuotaError):
            next(iter(client.chat_stream([Message(role="user", content="Hi")])))

    def test_error_mid_stream(self):
        client = make_client()

        def broken():
            yield chunk("partial")
            raise openai.APIConnectionError(request=REQUEST)

        client._client.chat.completions.create.return_value = broken()
        stream = client.chat_stream([Message(role="user", content="Hi")])
        assert next(stream) == "partial"
        with pytest.raises(GatewayConnectionError):
            next(stream)


class TestTryParseJson:
    """Tests for JSON extraction from model output."""

    def test_direct(self):
        assert make_client()._try_parse_json('{"a": 1}') == {"a": 1}

    def test_fenced(self):
        assert make_client()._try_parse_json('Here:\n```json\n{"a": 1}\n```') == {"a": 1}

    def test_embedded(self):
        assert make_client()._try_parse_json('prefix {"a": 1} suffix') == {"a": 1}

    def test_think_block_stripped(self):
        assert make_client()._try_parse_json('<think>{"x": 0}</think>{"a": 1}') == {"a": 1}

    def test_non_object(self):
        assert make_client()._try_parse_json("[1, 2]") is None

    def test_garbage(self):
        assert make_client()._try_parse_json("nothing here") is None
