"""Tests for AI provider clients."""

import asyncio
import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from nutrition_resolver.adapters.claude_client import ClaudeNutritionClient
from nutrition_resolver.adapters.gemini_client import GeminiNutritionClient
from nutrition_resolver.adapters.openai_client import OpenAINutritionClient
from nutrition_resolver.config import ProviderConfig
from nutrition_resolver.errors import (
    ProviderAuthError,
    ProviderHttpError,
    ProviderParseError,
)
from tests.conftest import CHICKEN_PAYLOAD


class _FakeCompletions:
    def __init__(self, content: str | None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            usage=SimpleNamespace(total_tokens=321),
        )


class _FakeOpenAI:
    def __init__(self, completions: _FakeCompletions) -> None:
        self.chat = SimpleNamespace(completions=completions)


def _config(api_key: str | None = "key", base_url: str = "https://api.test") -> ProviderConfig:
    return ProviderConfig(
        api_key=api_key,
        base_url=base_url,
        model="test-model",
        timeout_seconds=5,
        api_version="2023-06-01",
    )


def _client(handler) -> httpx.AsyncClient:  # type: ignore[no-untyped-def]
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_openai_client_parses_message_content() -> None:
    completions = _FakeCompletions(json.dumps(CHICKEN_PAYLOAD))
    client = OpenAINutritionClient(client=_FakeOpenAI(completions), model="gpt-4o-mini")

    result = asyncio.run(client.resolve("chicken breast"))

    assert result.tokens_used == 321
    assert result.data.items[0].label == "chicken breast"
    assert completions.last_payload is not None
    assert completions.last_payload["response_format"] == {"type": "json_object"}
    assert completions.last_payload["model"] == "gpt-4o-mini"


def test_openai_client_without_key_raises_auth_error() -> None:
    client = OpenAINutritionClient.create(_config(api_key=None))

    with pytest.raises(ProviderAuthError):
        asyncio.run(client.resolve("rice"))


def test_openai_client_maps_status_errors() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.APIStatusError(
        "rate limited", response=httpx.Response(429, request=request), body=None
    )
    client = OpenAINutritionClient(
        client=_FakeOpenAI(_FakeCompletions(None, error=error)), model="gpt-4o-mini"
    )

    with pytest.raises(ProviderHttpError) as exc_info:
        asyncio.run(client.resolve("rice"))

    assert exc_info.value.status_code == 429


def test_openai_client_empty_content_is_parse_error() -> None:
    client = OpenAINutritionClient(
        client=_FakeOpenAI(_FakeCompletions(None)), model="gpt-4o-mini"
    )

    with pytest.raises(ProviderParseError):
        asyncio.run(client.resolve("rice"))


def test_gemini_client_joins_candidate_parts() -> None:
    text = json.dumps(CHICKEN_PAYLOAD)
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content.decode())
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {"content": {"parts": [{"text": text[:20]}, {"text": text[20:]}]}}
                ],
                "usageMetadata": {"totalTokenCount": 456},
            },
        )

    client = GeminiNutritionClient(config=_config(), http_client=_client(handler))

    result = asyncio.run(client.resolve("chicken breast"))

    assert result.tokens_used == 456
    assert result.data.totals.kcal == 165
    assert seen["path"] == "/models/test-model:generateContent"
    assert seen["key"] == "key"
    body = seen["body"]
    assert isinstance(body, dict)
    assert "chicken breast" in body["contents"][0]["parts"][0]["text"]


def test_gemini_client_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "unavailable"})

    client = GeminiNutritionClient(config=_config(), http_client=_client(handler))

    with pytest.raises(ProviderHttpError) as exc_info:
        asyncio.run(client.resolve("rice"))

    assert exc_info.value.status_code == 503


def test_gemini_client_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = GeminiNutritionClient(config=_config(), http_client=_client(handler))

    with pytest.raises(ProviderHttpError):
        asyncio.run(client.resolve("rice"))


def test_gemini_client_missing_candidates_is_parse_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    client = GeminiNutritionClient(config=_config(), http_client=_client(handler))

    with pytest.raises(ProviderParseError):
        asyncio.run(client.resolve("rice"))


def test_gemini_client_without_key_makes_no_call() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    client = GeminiNutritionClient(
        config=_config(api_key=None), http_client=_client(handler)
    )

    with pytest.raises(ProviderAuthError):
        asyncio.run(client.resolve("rice"))

    assert calls == []


def test_claude_client_extracts_json_from_prose() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["headers"] = dict(request.headers)
        return httpx.Response(
            200,
            json={
                "content": [
                    {
                        "type": "text",
                        "text": "Here you go:\n" + json.dumps(CHICKEN_PAYLOAD),
                    }
                ],
                "usage": {"input_tokens": 300, "output_tokens": 120},
            },
        )

    client = ClaudeNutritionClient(config=_config(), http_client=_client(handler))

    result = asyncio.run(client.resolve("chicken breast"))

    assert result.tokens_used == 420
    assert result.data.items[0].confidence == 0.95
    assert seen["path"] == "/messages"
    headers = seen["headers"]
    assert isinstance(headers, dict)
    assert headers["x-api-key"] == "key"
    assert headers["anthropic-version"] == "2023-06-01"


def test_claude_client_non_json_reply_is_parse_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"content": [{"type": "text", "text": "No idea, sorry."}]}
        )

    client = ClaudeNutritionClient(config=_config(), http_client=_client(handler))

    with pytest.raises(ProviderParseError):
        asyncio.run(client.resolve("rice"))


def test_claude_client_unauthorized_is_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"type": "authentication_error"}})

    client = ClaudeNutritionClient(config=_config(), http_client=_client(handler))

    with pytest.raises(ProviderHttpError) as exc_info:
        asyncio.run(client.resolve("rice"))

    assert exc_info.value.status_code == 401


@pytest.mark.parametrize("reported", [None, "lots", -5, {"total": 3}])
def test_gemini_client_ignores_malformed_token_count(reported: object) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {"content": {"parts": [{"text": json.dumps(CHICKEN_PAYLOAD)}]}}
                ],
                "usageMetadata": {"totalTokenCount": reported},
            },
        )

    client = GeminiNutritionClient(config=_config(), http_client=_client(handler))

    result = asyncio.run(client.resolve("chicken breast"))

    assert result.tokens_used == 0
    assert result.data.totals.kcal == 165


def test_claude_client_ignores_malformed_token_count() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "content": [{"type": "text", "text": json.dumps(CHICKEN_PAYLOAD)}],
                "usage": {"input_tokens": None, "output_tokens": "12"},
            },
        )

    client = ClaudeNutritionClient(config=_config(), http_client=_client(handler))

    result = asyncio.run(client.resolve("chicken breast"))

    assert result.tokens_used == 0


def test_claude_client_counts_valid_side_of_partial_usage() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "content": [{"type": "text", "text": json.dumps(CHICKEN_PAYLOAD)}],
                "usage": {"input_tokens": 300, "output_tokens": None},
            },
        )

    client = ClaudeNutritionClient(config=_config(), http_client=_client(handler))

    result = asyncio.run(client.resolve("chicken breast"))

    assert result.tokens_used == 300
