"""OpenAI Chat Completions client for nutrition extraction."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from nutrition_resolver.adapters.provider_http import token_count
from nutrition_resolver.config import ProviderConfig
from nutrition_resolver.errors import (
    ProviderAuthError,
    ProviderHttpError,
    ProviderParseError,
)
from nutrition_resolver.services.extraction import (
    ProviderClient,
    ProviderResult,
    build_prompt,
    parse_nutrition_payload,
)


@dataclass
class OpenAINutritionClient(ProviderClient):
    """Provider client backed by the OpenAI SDK."""

    client: AsyncOpenAI | None
    model: str

    @classmethod
    def create(cls, config: ProviderConfig) -> "OpenAINutritionClient":
        """Create a client; a missing key is reported when resolving."""
        if not config.api_key:
            return cls(client=None, model=config.model)
        return cls(
            client=AsyncOpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                timeout=config.timeout_seconds,
                max_retries=0,
            ),
            model=config.model,
        )

    async def resolve(self, food_text: str) -> ProviderResult:
        """Call Chat Completions in JSON mode and normalize the result."""
        if self.client is None:
            raise ProviderAuthError("OpenAI API key not configured")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_prompt(food_text)}],
                response_format={"type": "json_object"},
                temperature=0,
            )
        except openai.APIStatusError as exc:
            raise ProviderHttpError(
                f"OpenAI API error: {exc.status_code}", status_code=exc.status_code
            ) from exc
        except openai.APIError as exc:
            raise ProviderHttpError(f"OpenAI request failed: {exc}") from exc

        if not response.choices:
            raise ProviderParseError("OpenAI returned no choices")
        content = response.choices[0].message.content
        tokens = token_count(response.usage.total_tokens) if response.usage else 0
        return ProviderResult(data=parse_nutrition_payload(content), tokens_used=tokens)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.client is not None:
            await self.client.close()
