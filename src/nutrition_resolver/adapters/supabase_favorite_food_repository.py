"""Supabase repository for favorite foods."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from nutrition_resolver.adapters.supabase_queries import execute
from nutrition_resolver.domain.favorites import FavoriteFood
from nutrition_resolver.errors import StorageError
from nutrition_resolver.services.favorites import FavoriteFoodRepository

_TABLE = "favorite_foods"


@dataclass
class SupabaseFavoriteFoodRepository(FavoriteFoodRepository):
    """Supabase-backed repository for favorite foods."""

    client: Client

    def list_for_user(self, user_id: str, limit: int) -> list[FavoriteFood]:
        """Return favorites, most frequent and most recently used first."""
        rows = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("frequency_score", desc=True)
            .order("last_used_at", desc=True)
            .limit(limit),
            "favorite foods listing",
        )
        return [_parse_favorite(row) for row in rows]

    def upsert(self, favorite: FavoriteFood) -> FavoriteFood:
        """Insert or replace the favorite keyed by user and label."""
        rows = execute(
            self.client.table(_TABLE).upsert(
                {
                    "user_id": favorite.user_id,
                    "food_label": favorite.food_label,
                    "standard_portion_qty": favorite.standard_portion_qty,
                    "standard_portion_unit": favorite.standard_portion_unit,
                    "frequency_score": favorite.frequency_score,
                    "last_used_at": favorite.last_used_at.isoformat()
                    if favorite.last_used_at
                    else None,
                },
                on_conflict="user_id,food_label",
            ),
            "favorite food upsert",
        )
        if not rows:
            return favorite
        return _parse_favorite(rows[0])


def _parse_favorite(row: dict[str, object]) -> FavoriteFood:
    try:
        last_used = row.get("last_used_at")
        return FavoriteFood(
            user_id=str(row["user_id"]),
            food_label=str(row["food_label"]),
            standard_portion_qty=float(row.get("standard_portion_qty") or 100.0),
            standard_portion_unit=str(row.get("standard_portion_unit") or "g"),
            frequency_score=int(row.get("frequency_score") or 0),
            last_used_at=datetime.fromisoformat(last_used)
            if isinstance(last_used, str) and last_used
            else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise StorageError(f"Malformed favorite food row: {exc}") from exc
