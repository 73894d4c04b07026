"""Application configuration."""

import os
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

from nutrition_resolver.domain.providers import AIProvider

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    gemini_api_key: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-1.5-flash"
    anthropic_api_key: str | None = None
    anthropic_base_url: str = "https://api.anthropic.com/v1"
    anthropic_model: str = "claude-3-5-haiku-latest"
    anthropic_version: str = "2023-06-01"
    openai_rate_per_million: float = 0.5
    gemini_rate_per_million: float = 0.25
    claude_rate_per_million: float = 0.5
    default_rate_per_million: float = 0.25
    cache_ttl_days: int = 7
    default_usage_quota: int = 1000
    provider_timeout_seconds: float = 30.0
    default_ai_provider: AIProvider = AIProvider.GEMINI
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def provider_config(self, provider: AIProvider) -> "ProviderConfig":
        """Return the connection settings for a provider."""
        if provider is AIProvider.OPENAI:
            return ProviderConfig(
                api_key=self.openai_api_key,
                base_url=self.openai_base_url,
                model=self.openai_model,
                timeout_seconds=self.provider_timeout_seconds,
            )
        if provider is AIProvider.GEMINI:
            return ProviderConfig(
                api_key=self.gemini_api_key,
                base_url=self.gemini_base_url,
                model=self.gemini_model,
                timeout_seconds=self.provider_timeout_seconds,
            )
        return ProviderConfig(
            api_key=self.anthropic_api_key,
            base_url=self.anthropic_base_url,
            model=self.anthropic_model,
            timeout_seconds=self.provider_timeout_seconds,
            api_version=self.anthropic_version,
        )

    def rate_table(self) -> dict[str, float]:
        """Return USD-per-million-token billing rates keyed by provider."""
        return {
            AIProvider.OPENAI.value: self.openai_rate_per_million,
            AIProvider.GEMINI.value: self.gemini_rate_per_million,
            AIProvider.CLAUDE.value: self.claude_rate_per_million,
        }


@dataclass(frozen=True)
class ProviderConfig:
    """Credential and endpoint for a single AI provider."""

    api_key: str | None
    base_url: str
    model: str
    timeout_seconds: float = 30.0
    api_version: str | None = None
