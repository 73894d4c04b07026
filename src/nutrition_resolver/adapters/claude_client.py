"""Anthropic Messages API client for nutrition extraction."""

from dataclasses import dataclass

import httpx

from nutrition_resolver.adapters.provider_http import post_json, token_count
from nutrition_resolver.config import ProviderConfig
from nutrition_resolver.errors import ProviderAuthError, ProviderParseError
from nutrition_resolver.services.extraction import (
    ProviderClient,
    ProviderResult,
    build_prompt,
    parse_nutrition_payload,
)

_MAX_OUTPUT_TOKENS = 2048


@dataclass
class ClaudeNutritionClient(ProviderClient):
    """HTTPX-backed Claude client."""

    config: ProviderConfig
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, config: ProviderConfig) -> "ClaudeNutritionClient":
        """Create a Claude client with a managed httpx session."""
        return cls(config=config, http_client=httpx.AsyncClient())

    async def resolve(self, food_text: str) -> ProviderResult:
        """Call the Messages API and pull the JSON object out of the reply."""
        if not self.config.api_key:
            raise ProviderAuthError("Anthropic API key not configured")
        envelope = await post_json(
            self.http_client,
            provider="Claude",
            url=f"{self.config.base_url}/messages",
            headers={
                "x-api-key": self.config.api_key,
                "anthropic-version": self.config.api_version or "2023-06-01",
            },
            payload={
                "model": self.config.model,
                "max_tokens": _MAX_OUTPUT_TOKENS,
                "messages": [{"role": "user", "content": build_prompt(food_text)}],
            },
            timeout=self.config.timeout_seconds,
        )
        return ProviderResult(
            data=parse_nutrition_payload(_first_text_block(envelope)),
            tokens_used=_token_count(envelope),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _first_text_block(envelope: dict[str, object]) -> str:
    content = envelope.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                return str(block.get("text", ""))
    raise ProviderParseError("Claude response has no text content")


def _token_count(envelope: dict[str, object]) -> int:
    usage = envelope.get("usage")
    if not isinstance(usage, dict):
        return 0
    return token_count(usage.get("input_tokens"), usage.get("output_tokens"))
