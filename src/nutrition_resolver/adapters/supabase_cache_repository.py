"""Supabase repository for the nutrition result cache."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import ValidationError as SchemaValidationError
from supabase import Client

from nutrition_resolver.adapters.supabase_queries import execute
from nutrition_resolver.domain.cache import CacheEntry
from nutrition_resolver.domain.nutrition import NutritionData
from nutrition_resolver.errors import StorageError
from nutrition_resolver.services.cache import CacheRepository

_TABLE = "nutrition_cache"


@dataclass
class SupabaseCacheRepository(CacheRepository):
    """Supabase implementation of the nutrition cache."""

    client: Client

    def lookup(self, food_query: str, now: datetime) -> CacheEntry | None:
        """Return an unexpired row for the key; expired rows count as a miss."""
        rows = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("food_query", food_query)
            .gte("expires_at", now.isoformat())
            .limit(1),
            "cache lookup",
        )
        if not rows:
            return None
        return _parse_row(rows[0])

    def record_hit(self, entry: CacheEntry) -> None:
        """Increment the hit count for the entry's key."""
        execute(
            self.client.table(_TABLE)
            .update({"hit_count": entry.hit_count + 1})
            .eq("food_query", entry.food_query),
            "cache hit update",
        )

    def upsert(self, entry: CacheEntry) -> None:
        """Replace the row for the key."""
        execute(
            self.client.table(_TABLE).upsert(
                {
                    "food_query": entry.food_query,
                    "normalized_query": entry.food_query,
                    "nutrition_data": entry.nutrition_data.model_dump(mode="json"),
                    "confidence_score": entry.confidence_score,
                    "ai_provider": entry.ai_provider,
                    "hit_count": entry.hit_count,
                    "created_at": entry.created_at.isoformat(),
                    "expires_at": entry.expires_at.isoformat(),
                },
                on_conflict="food_query",
            ),
            "cache upsert",
        )

    def clear(self, food_query: str | None = None) -> int:
        """Delete one key, or every row when no key is given."""
        query = self.client.table(_TABLE).delete()
        if food_query is None:
            query = query.neq("food_query", "")
        else:
            query = query.eq("food_query", food_query)
        return len(execute(query, "cache clear"))

    def list_popular(self, limit: int, now: datetime) -> list[CacheEntry]:
        """Return unexpired rows with the most hits first."""
        rows = execute(
            self.client.table(_TABLE)
            .select("*")
            .gte("expires_at", now.isoformat())
            .order("hit_count", desc=True)
            .limit(limit),
            "popular foods",
        )
        return [_parse_row(row) for row in rows]


def _parse_row(row: dict[str, object]) -> CacheEntry:
    try:
        data = NutritionData.model_validate(row.get("nutrition_data"))
        return CacheEntry(
            food_query=str(row["food_query"]),
            nutrition_data=data,
            confidence_score=float(row.get("confidence_score") or 0.0),
            ai_provider=str(row.get("ai_provider") or ""),
            hit_count=int(row.get("hit_count") or 0),
            created_at=datetime.fromisoformat(str(row["created_at"])),
            expires_at=datetime.fromisoformat(str(row["expires_at"])),
        )
    except (KeyError, ValueError, SchemaValidationError) as exc:
        raise StorageError(f"Malformed cache row: {exc}") from exc
