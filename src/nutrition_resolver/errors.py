"""Error taxonomy for nutrition resolution."""


class NutritionResolverError(Exception):
    """Base error for the resolution engine."""


class ValidationError(NutritionResolverError):
    """Raised when the request input is unusable."""


class UnsupportedProviderError(NutritionResolverError):
    """Raised when a request names an unknown AI provider."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported AI provider: {provider}")
        self.provider = provider


class QuotaExceededError(NutritionResolverError):
    """Raised when a caller has used up the quota."""

    def __init__(self, current_usage: int, usage_quota: int) -> None:
        super().__init__(
            f"Monthly quota exceeded ({current_usage}/{usage_quota}). "
            "Please upgrade your plan."
        )
        self.current_usage = current_usage
        self.usage_quota = usage_quota


class StorageError(NutritionResolverError):
    """Raised when the backing store rejects a read or write."""


class ProviderError(NutritionResolverError):
    """Base error for a failed AI provider call."""


class ProviderAuthError(ProviderError):
    """Raised when the provider credential is not configured."""


class ProviderHttpError(ProviderError):
    """Raised when the provider call fails at the HTTP level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderParseError(ProviderError):
    """Raised when the provider payload is not valid nutrition JSON."""
