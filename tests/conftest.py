"""Shared test fixtures."""

import json
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

import pytest

from nutrition_resolver.config import Settings
from nutrition_resolver.containers import AppContainer
from nutrition_resolver.domain.cache import CacheEntry
from nutrition_resolver.domain.favorites import FavoriteFood
from nutrition_resolver.domain.providers import AIProvider
from nutrition_resolver.domain.usage import UsageRecord, UsageSummary
from nutrition_resolver.errors import StorageError
from nutrition_resolver.services.admin import AdminService
from nutrition_resolver.services.cache import CacheRepository
from nutrition_resolver.services.costs import CostAccountant
from nutrition_resolver.services.extraction import (
    ProviderClient,
    ProviderResult,
    parse_nutrition_payload,
)
from nutrition_resolver.services.favorites import (
    FavoriteFoodRepository,
    FavoriteFoodService,
)
from nutrition_resolver.services.resolution import NutritionResolver
from nutrition_resolver.services.usage import UsageRepository

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

CHICKEN_PAYLOAD: dict[str, object] = {
    "items": [
        {
            "label": "chicken breast",
            "qty": 100,
            "unit": "g",
            "confidence": 0.95,
            "macros": {"kcal": 165, "protein": 31, "fat": 3.6, "carbs": 0},
        }
    ],
    "totals": {"kcal": 165, "protein": 31, "fat": 3.6, "carbs": 0},
}


@dataclass
class InMemoryCacheRepository(CacheRepository):
    """In-memory nutrition cache for tests."""

    rows: dict[str, CacheEntry] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    fail_lookup: bool = False
    fail_writes: bool = False

    def lookup(self, food_query: str, now: datetime) -> CacheEntry | None:
        self.calls.append("lookup")
        if self.fail_lookup:
            raise StorageError("lookup unavailable")
        entry = self.rows.get(food_query)
        if entry is None or entry.expires_at < now:
            return None
        return entry

    def record_hit(self, entry: CacheEntry) -> None:
        self.calls.append("record_hit")
        if self.fail_writes:
            raise StorageError("update unavailable")
        current = self.rows[entry.food_query]
        self.rows[entry.food_query] = replace(current, hit_count=current.hit_count + 1)

    def upsert(self, entry: CacheEntry) -> None:
        self.calls.append("upsert")
        if self.fail_writes:
            raise StorageError("upsert unavailable")
        self.rows[entry.food_query] = entry

    def clear(self, food_query: str | None = None) -> int:
        self.calls.append("clear")
        if food_query is None:
            count = len(self.rows)
            self.rows.clear()
            return count
        return 1 if self.rows.pop(food_query, None) else 0

    def list_popular(self, limit: int, now: datetime) -> list[CacheEntry]:
        live = [entry for entry in self.rows.values() if entry.expires_at >= now]
        return sorted(live, key=lambda entry: entry.hit_count, reverse=True)[:limit]


@dataclass
class InMemoryUsageRepository(UsageRepository):
    """In-memory usage ledger for tests."""

    records: list[UsageRecord] = field(default_factory=list)
    summaries: dict[str, UsageSummary] = field(default_factory=dict)
    summary_reads: int = 0
    fail_appends: bool = False
    fail_summary: bool = False

    def append(self, record: UsageRecord) -> None:
        if self.fail_appends:
            raise StorageError("insert unavailable")
        self.records.append(record)

    def get_summary(self, user_id: str) -> UsageSummary | None:
        self.summary_reads += 1
        if self.fail_summary:
            raise StorageError("summary unavailable")
        return self.summaries.get(user_id)

    def list_recent(self, limit: int) -> list[UsageRecord]:
        return list(reversed(self.records))[:limit]


@dataclass
class InMemoryFavoriteFoodRepository(FavoriteFoodRepository):
    """In-memory favorite foods keyed by user and label."""

    rows: dict[tuple[str, str], FavoriteFood] = field(default_factory=dict)
    fail: bool = False

    def list_for_user(self, user_id: str, limit: int) -> list[FavoriteFood]:
        if self.fail:
            raise StorageError("favorites unavailable")
        favorites = [row for row in self.rows.values() if row.user_id == user_id]
        favorites.sort(
            key=lambda row: (row.frequency_score, row.last_used_at or FIXED_NOW),
            reverse=True,
        )
        return favorites[:limit]

    def upsert(self, favorite: FavoriteFood) -> FavoriteFood:
        if self.fail:
            raise StorageError("favorites unavailable")
        self.rows[(favorite.user_id, favorite.food_label)] = favorite
        return favorite


@dataclass
class FakeProviderClient(ProviderClient):
    """Provider client returning a fixed payload or raising a fixed error."""

    payload: dict[str, object] = field(default_factory=lambda: dict(CHICKEN_PAYLOAD))
    tokens: int = 1200
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def resolve(self, food_text: str) -> ProviderResult:
        self.calls.append(food_text)
        if self.error is not None:
            raise self.error
        return ProviderResult(
            data=parse_nutrition_payload(json.dumps(self.payload)),
            tokens_used=self.tokens,
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        gemini_api_key="gemini-key",
    )


@pytest.fixture
def cache_repository() -> InMemoryCacheRepository:
    return InMemoryCacheRepository()


@pytest.fixture
def usage_repository() -> InMemoryUsageRepository:
    return InMemoryUsageRepository()


@pytest.fixture
def provider_client() -> FakeProviderClient:
    return FakeProviderClient()


@pytest.fixture
def resolver(
    cache_repository: InMemoryCacheRepository,
    usage_repository: InMemoryUsageRepository,
    provider_client: FakeProviderClient,
) -> NutritionResolver:
    return NutritionResolver(
        providers={
            AIProvider.GEMINI: provider_client,
            AIProvider.OPENAI: provider_client,
            AIProvider.CLAUDE: provider_client,
        },
        cache_repository=cache_repository,
        usage_repository=usage_repository,
        cost_accountant=CostAccountant(
            rates_per_million={"openai": 0.5, "gemini": 0.25, "claude": 0.5}
        ),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def favorite_repository() -> InMemoryFavoriteFoodRepository:
    return InMemoryFavoriteFoodRepository()


@pytest.fixture
def container(
    settings: Settings,
    resolver: NutritionResolver,
    cache_repository: InMemoryCacheRepository,
    usage_repository: InMemoryUsageRepository,
    favorite_repository: InMemoryFavoriteFoodRepository,
) -> AppContainer:
    admin_service = AdminService(
        cache_repository=cache_repository,
        usage_repository=usage_repository,
        clock=lambda: FIXED_NOW,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        resolver=resolver,
        admin_service=admin_service,
        favorites_service=FavoriteFoodService(
            repository=favorite_repository, clock=lambda: FIXED_NOW
        ),
        close_resources=close_resources,
    )
