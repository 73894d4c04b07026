"""Google Gemini REST client for nutrition extraction."""

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


@dataclass
class GeminiNutritionClient(ProviderClient):
    """HTTPX-backed Gemini generateContent client."""

    config: ProviderConfig
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, config: ProviderConfig) -> "GeminiNutritionClient":
        """Create a Gemini client with a managed httpx session."""
        return cls(config=config, http_client=httpx.AsyncClient())

    async def resolve(self, food_text: str) -> ProviderResult:
        """Call generateContent and normalize the first candidate."""
        if not self.config.api_key:
            raise ProviderAuthError("Gemini API key not configured")
        envelope = await post_json(
            self.http_client,
            provider="Gemini",
            url=f"{self.config.base_url}/models/{self.config.model}:generateContent",
            headers={"x-goog-api-key": self.config.api_key},
            payload={
                "contents": [{"parts": [{"text": build_prompt(food_text)}]}],
                "generationConfig": {"responseMimeType": "application/json"},
            },
            timeout=self.config.timeout_seconds,
        )
        text = _candidate_text(envelope)
        usage = envelope.get("usageMetadata")
        tokens = 0
        if isinstance(usage, dict):
            tokens = token_count(usage.get("totalTokenCount"))
        return ProviderResult(data=parse_nutrition_payload(text), tokens_used=tokens)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _candidate_text(envelope: dict[str, object]) -> str:
    """Join the text parts of the first candidate."""
    try:
        parts = envelope["candidates"][0]["content"]["parts"]  # type: ignore[index]
        return "".join(part.get("text", "") for part in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise ProviderParseError("Gemini response has no candidate content") from exc
