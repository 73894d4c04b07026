"""AI provider identifiers."""

from enum import StrEnum

from nutrition_resolver.errors import UnsupportedProviderError


class AIProvider(StrEnum):
    """Supported AI text-extraction backends."""

    OPENAI = "openai"
    GEMINI = "gemini"
    CLAUDE = "claude"

    @classmethod
    def parse(cls, raw: str | None, default: "AIProvider") -> "AIProvider":
        """Return the provider for a request tag, or the default when absent."""
        if raw is None or not raw.strip():
            return default
        try:
            return cls(raw.strip().lower())
        except ValueError as exc:
            raise UnsupportedProviderError(raw) from exc
