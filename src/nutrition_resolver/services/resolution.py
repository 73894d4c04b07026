"""Nutrition resolution orchestration.

A request moves through validation, the caller's quota check, a cache lookup
and, on a miss, a single provider call. Provider failures are answered by the
offline estimator instead of surfacing as errors. Each terminal path of a
request with a caller identity appends one usage row after the response is
built. Cache and usage writes are best-effort.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from nutrition_resolver.domain.cache import CacheEntry, normalize_query
from nutrition_resolver.domain.nutrition import NutritionData
from nutrition_resolver.domain.providers import AIProvider
from nutrition_resolver.domain.usage import UsageRecord, UsageStatus, UsageSummary
from nutrition_resolver.errors import (
    NutritionResolverError,
    ProviderError,
    QuotaExceededError,
    UnsupportedProviderError,
    ValidationError,
)
from nutrition_resolver.services.cache import CacheRepository, build_entry
from nutrition_resolver.services.costs import CostAccountant
from nutrition_resolver.services.extraction import ProviderClient
from nutrition_resolver.services.fallback import FallbackEstimator
from nutrition_resolver.services.scoring import confidence_score
from nutrition_resolver.services.usage import UsageRepository

_logger = logging.getLogger(__name__)

BATCH_SIZE = 3


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of a resolution that produced usable nutrition data."""

    data: NutritionData
    status: UsageStatus
    tokens: int | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Serialize into the response body shape."""
        data: dict[str, object] = self.data.model_dump(mode="json")
        if self.tokens is not None:
            data["tokens"] = self.tokens
        payload: dict[str, object] = {"data": data}
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class NutritionResolver:
    """Request handler sequencing quota, cache, provider and usage logging."""

    providers: dict[AIProvider, ProviderClient]
    cache_repository: CacheRepository
    usage_repository: UsageRepository
    cost_accountant: CostAccountant
    fallback: FallbackEstimator = field(default_factory=FallbackEstimator)
    default_provider: AIProvider = AIProvider.GEMINI
    cache_ttl: timedelta = timedelta(days=7)
    default_usage_quota: int = 1000
    debug: bool = False
    clock: Callable[[], datetime] = _utc_now

    async def resolve(
        self,
        food_text: str | None,
        user_id: str | None = None,
        ai_provider: str | None = None,
    ) -> ResolutionResult:
        """Resolve free food text into nutrition data."""
        started = time.monotonic()
        if not food_text or not food_text.strip():
            raise ValidationError("Food text is required")
        provider = AIProvider.parse(ai_provider, self.default_provider)
        client = self.providers.get(provider)
        if client is None:
            raise UnsupportedProviderError(provider.value)

        if user_id:
            self._check_quota(user_id, provider, started)

        key = normalize_query(food_text)
        cached = self._lookup(key)
        if cached is not None:
            self._record_hit(cached)
            result = ResolutionResult(
                data=cached.nutrition_data, status=UsageStatus.CACHE_HIT
            )
            self._log_usage(user_id, provider, UsageStatus.CACHE_HIT, started)
            return result

        try:
            provider_result = await client.resolve(food_text)
        except ProviderError as exc:
            _logger.warning("AI provider %s failed: %s", provider.value, exc)
            estimate = self.fallback.estimate(food_text)
            result = ResolutionResult(
                data=estimate.data,
                status=UsageStatus.AI_ERROR,
                error=estimate.annotation,
            )
            self._log_usage(
                user_id,
                provider,
                UsageStatus.AI_ERROR,
                started,
                error_message=str(exc),
            )
            return result

        tokens = provider_result.tokens_used
        cost = self.cost_accountant.cost_cents(tokens, provider.value)
        self._store(key, provider_result.data, provider)
        result = ResolutionResult(
            data=provider_result.data, status=UsageStatus.SUCCESS, tokens=tokens
        )
        self._log_usage(
            user_id,
            provider,
            UsageStatus.SUCCESS,
            started,
            tokens=tokens,
            cost_cents=cost,
        )
        return result

    async def resolve_batch(
        self,
        food_texts: list[str],
        user_id: str | None = None,
        ai_provider: str | None = None,
    ) -> list[ResolutionResult | NutritionResolverError]:
        """Resolve several texts, a few at a time, keeping per-text failures."""
        results: list[ResolutionResult | NutritionResolverError] = []
        for start in range(0, len(food_texts), BATCH_SIZE):
            chunk = food_texts[start : start + BATCH_SIZE]
            results.extend(
                await asyncio.gather(
                    *(self._resolve_or_error(text, user_id, ai_provider) for text in chunk)
                )
            )
        return results

    def get_usage_summary(self, user_id: str) -> UsageSummary:
        """Return the caller's usage, defaulting when nothing is recorded."""
        summary = self.usage_repository.get_summary(user_id)
        return summary or self._default_summary(user_id)

    async def _resolve_or_error(
        self, food_text: str, user_id: str | None, ai_provider: str | None
    ) -> ResolutionResult | NutritionResolverError:
        try:
            return await self.resolve(food_text, user_id=user_id, ai_provider=ai_provider)
        except NutritionResolverError as exc:
            return exc

    def _check_quota(self, user_id: str, provider: AIProvider, started: float) -> None:
        try:
            summary = self.usage_repository.get_summary(user_id)
        except Exception:
            _logger.exception("Failed to read usage summary for %s", user_id)
            return
        summary = summary or self._default_summary(user_id)
        if not summary.quota_exhausted:
            return
        error = QuotaExceededError(summary.current_usage, summary.usage_quota)
        self._log_usage(
            user_id,
            provider,
            UsageStatus.QUOTA_EXCEEDED,
            started,
            error_message=str(error),
        )
        raise error

    def _default_summary(self, user_id: str) -> UsageSummary:
        return UsageSummary(
            user_id=user_id, usage_quota=self.default_usage_quota, current_usage=0
        )

    def _lookup(self, key: str) -> CacheEntry | None:
        try:
            entry = self.cache_repository.lookup(key, self.clock())
        except Exception:
            _logger.exception("Cache lookup failed for %r", key)
            return None
        if self.debug:
            _logger.info("Nutrition cache %s: key=%s", "hit" if entry else "miss", key)
        return entry

    def _record_hit(self, entry: CacheEntry) -> None:
        try:
            self.cache_repository.record_hit(entry)
        except Exception:
            _logger.exception("Failed to record cache hit for %r", entry.food_query)

    def _store(self, key: str, data: NutritionData, provider: AIProvider) -> None:
        entry = build_entry(
            food_query=key,
            data=data,
            confidence_score=confidence_score(data),
            ai_provider=provider.value,
            now=self.clock(),
            ttl=self.cache_ttl,
        )
        try:
            self.cache_repository.upsert(entry)
        except Exception:
            _logger.exception("Failed to cache nutrition for %r", key)

    def _log_usage(  # noqa: PLR0913
        self,
        user_id: str | None,
        provider: AIProvider,
        status: UsageStatus,
        started: float,
        *,
        tokens: int = 0,
        cost_cents: int = 0,
        error_message: str | None = None,
    ) -> None:
        """Append a usage row for identified callers, discarding failures."""
        if not user_id:
            return
        record = UsageRecord(
            user_id=user_id,
            ai_provider=provider.value,
            tokens_used=tokens,
            cost_cents=cost_cents,
            status=status,
            response_time_ms=int((time.monotonic() - started) * 1000),
            error_message=error_message,
        )
        try:
            self.usage_repository.append(record)
        except Exception:
            _logger.exception("Failed to log API usage for %s", user_id)
