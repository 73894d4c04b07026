"""Admin service for cache maintenance and usage reporting."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from nutrition_resolver.domain.cache import CacheEntry, normalize_query
from nutrition_resolver.domain.usage import UsageRecord
from nutrition_resolver.services.cache import CacheRepository
from nutrition_resolver.services.usage import UsageRepository


@dataclass
class AdminService:
    """Service for admin dashboards."""

    cache_repository: CacheRepository
    usage_repository: UsageRepository
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(tz=UTC))

    def clear_cache(self, food_query: str | None = None) -> int:
        """Delete one cached query, or the whole cache when none is given."""
        key = normalize_query(food_query) if food_query else None
        return self.cache_repository.clear(key)

    def list_popular_foods(self, limit: int = 50) -> list[dict[str, object]]:
        """Return the most requested cached queries."""
        entries = self.cache_repository.list_popular(limit, self.clock())
        return [_serialize_entry(entry) for entry in entries]

    def list_usage(self, limit: int = 30) -> list[dict[str, object]]:
        """Return recent usage rows."""
        return [
            _serialize_usage(record)
            for record in self.usage_repository.list_recent(limit)
        ]


def _serialize_entry(entry: CacheEntry) -> dict[str, object]:
    return {
        "food_query": entry.food_query,
        "confidence_score": entry.confidence_score,
        "ai_provider": entry.ai_provider,
        "hit_count": entry.hit_count,
        "created_at": entry.created_at.isoformat(),
        "expires_at": entry.expires_at.isoformat(),
        "totals": entry.nutrition_data.totals.model_dump(),
    }


def _serialize_usage(record: UsageRecord) -> dict[str, object]:
    return {
        "user_id": record.user_id,
        "ai_provider": record.ai_provider,
        "tokens_used": record.tokens_used,
        "cost_cents": record.cost_cents,
        "status": record.status.value,
        "response_time_ms": record.response_time_ms,
        "error_message": record.error_message,
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }
