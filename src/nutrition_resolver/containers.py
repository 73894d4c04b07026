"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from nutrition_resolver.adapters.claude_client import ClaudeNutritionClient
from nutrition_resolver.adapters.gemini_client import GeminiNutritionClient
from nutrition_resolver.adapters.openai_client import OpenAINutritionClient
from nutrition_resolver.adapters.supabase_favorite_food_repository import (
    SupabaseFavoriteFoodRepository,
)
from nutrition_resolver.adapters.supabase_cache_repository import (
    SupabaseCacheRepository,
)
from nutrition_resolver.adapters.supabase_usage_repository import (
    SupabaseUsageRepository,
)
from nutrition_resolver.config import Settings
from nutrition_resolver.domain.providers import AIProvider
from nutrition_resolver.services.admin import AdminService
from nutrition_resolver.services.costs import CostAccountant
from nutrition_resolver.services.favorites import FavoriteFoodService
from nutrition_resolver.services.fallback import FallbackEstimator
from nutrition_resolver.services.resolution import NutritionResolver


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    resolver: NutritionResolver
    admin_service: AdminService
    favorites_service: FavoriteFoodService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    cache_repository = SupabaseCacheRepository(supabase_client)
    usage_repository = SupabaseUsageRepository(
        supabase_client, default_usage_quota=resolved_settings.default_usage_quota
    )
    openai_client = OpenAINutritionClient.create(
        resolved_settings.provider_config(AIProvider.OPENAI)
    )
    gemini_client = GeminiNutritionClient.create(
        resolved_settings.provider_config(AIProvider.GEMINI)
    )
    claude_client = ClaudeNutritionClient.create(
        resolved_settings.provider_config(AIProvider.CLAUDE)
    )
    resolver = NutritionResolver(
        providers={
            AIProvider.OPENAI: openai_client,
            AIProvider.GEMINI: gemini_client,
            AIProvider.CLAUDE: claude_client,
        },
        cache_repository=cache_repository,
        usage_repository=usage_repository,
        cost_accountant=CostAccountant(
            rates_per_million=resolved_settings.rate_table(),
            default_rate_per_million=resolved_settings.default_rate_per_million,
        ),
        fallback=FallbackEstimator(),
        default_provider=resolved_settings.default_ai_provider,
        cache_ttl=timedelta(days=resolved_settings.cache_ttl_days),
        default_usage_quota=resolved_settings.default_usage_quota,
        debug=resolved_settings.debug,
    )
    admin_service = AdminService(
        cache_repository=cache_repository,
        usage_repository=usage_repository,
    )
    favorites_service = FavoriteFoodService(
        repository=SupabaseFavoriteFoodRepository(supabase_client)
    )

    async def close_resources() -> None:
        await openai_client.close()
        await gemini_client.close()
        await claude_client.close()

    return AppContainer(
        settings=resolved_settings,
        resolver=resolver,
        admin_service=admin_service,
        favorites_service=favorites_service,
        close_resources=close_resources,
    )
