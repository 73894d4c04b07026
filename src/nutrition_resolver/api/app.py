"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nutrition_resolver.api.admin import router as admin_router
from nutrition_resolver.api.models import (
    BatchResolveRequest,
    FavoriteFoodRequest,
    ResolveRequest,
)
from nutrition_resolver.app_logging import configure_logging
from nutrition_resolver.containers import AppContainer
from nutrition_resolver.domain.favorites import FavoriteFood
from nutrition_resolver.domain.usage import UsageSummary
from nutrition_resolver.errors import (
    NutritionResolverError,
    QuotaExceededError,
    UnsupportedProviderError,
    ValidationError,
)
from nutrition_resolver.services.resolution import ResolutionResult

INTERNAL_ERROR_MESSAGE = "Internal server error"

_logger = logging.getLogger(__name__)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(debug=container.settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/nutrition/resolve")
    async def resolve_nutrition(body: ResolveRequest, request: Request) -> JSONResponse:
        """Resolve free food text into structured macros."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.resolver.resolve(
                body.food_text,
                user_id=body.user_id,
                ai_provider=body.ai_provider,
            )
        except NutritionResolverError as exc:
            return error_response(exc)
        except Exception:
            _logger.exception("Nutrition resolution failed")
            return _internal_error()
        return JSONResponse(result.to_payload())

    @app.post("/nutrition/resolve/batch")
    async def resolve_batch(
        body: BatchResolveRequest, request: Request
    ) -> JSONResponse:
        """Resolve several food texts; each result succeeds or fails alone."""
        state_container: AppContainer = request.app.state.container
        try:
            outcomes = await state_container.resolver.resolve_batch(
                body.food_texts,
                user_id=body.user_id,
                ai_provider=body.ai_provider,
            )
        except Exception:
            _logger.exception("Batch nutrition resolution failed")
            return _internal_error()
        return JSONResponse({"results": [_batch_item(outcome) for outcome in outcomes]})

    @app.get("/users/{user_id}/usage")
    async def user_usage(user_id: str, request: Request) -> JSONResponse:
        """Return the caller's usage against the quota."""
        state_container: AppContainer = request.app.state.container
        try:
            summary = state_container.resolver.get_usage_summary(user_id)
        except Exception:
            _logger.exception("Failed to load usage for %s", user_id)
            return _internal_error()
        return JSONResponse(_serialize_summary(summary))

    @app.get("/users/{user_id}/favorites")
    async def list_favorites(user_id: str, request: Request) -> JSONResponse:
        """Return the caller's favorite foods."""
        state_container: AppContainer = request.app.state.container
        try:
            favorites = state_container.favorites_service.list_favorites(user_id)
        except NutritionResolverError as exc:
            return error_response(exc)
        return JSONResponse(
            {"favorites": [_serialize_favorite(favorite) for favorite in favorites]}
        )

    @app.put("/users/{user_id}/favorites")
    async def save_favorite(
        user_id: str, body: FavoriteFoodRequest, request: Request
    ) -> JSONResponse:
        """Add or refresh a favorite food for the caller."""
        state_container: AppContainer = request.app.state.container
        try:
            favorite = state_container.favorites_service.save_favorite(
                user_id,
                body.food_label,
                portion_qty=body.portion_qty,
                portion_unit=body.portion_unit,
            )
        except NutritionResolverError as exc:
            return error_response(exc)
        return JSONResponse(_serialize_favorite(favorite))

    return app


def error_status(exc: NutritionResolverError) -> int:
    """Map a resolution error to its HTTP status."""
    if isinstance(exc, ValidationError | UnsupportedProviderError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, QuotaExceededError):
        return status.HTTP_403_FORBIDDEN
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(exc: NutritionResolverError) -> JSONResponse:
    """Render a resolution error as an error-only body."""
    code = error_status(exc)
    if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        _logger.error("Unhandled resolution error: %s", exc)
        return _internal_error()
    return JSONResponse({"error": str(exc)}, status_code=code)


def _internal_error() -> JSONResponse:
    return JSONResponse(
        {"error": INTERNAL_ERROR_MESSAGE},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _batch_item(outcome: ResolutionResult | NutritionResolverError) -> dict[str, object]:
    if isinstance(outcome, ResolutionResult):
        return outcome.to_payload()
    if error_status(outcome) == status.HTTP_500_INTERNAL_SERVER_ERROR:
        return {"error": INTERNAL_ERROR_MESSAGE}
    return {"error": str(outcome)}


def _serialize_summary(summary: UsageSummary) -> dict[str, object]:
    return {
        "user_id": summary.user_id,
        "usage_quota": summary.usage_quota,
        "current_usage": summary.current_usage,
        "total_requests": summary.total_requests,
        "total_tokens": summary.total_tokens,
        "total_cost_cents": summary.total_cost_cents,
        "last_request": summary.last_request.isoformat()
        if summary.last_request
        else None,
    }


def _serialize_favorite(favorite: FavoriteFood) -> dict[str, object]:
    return {
        "user_id": favorite.user_id,
        "food_label": favorite.food_label,
        "standard_portion_qty": favorite.standard_portion_qty,
        "standard_portion_unit": favorite.standard_portion_unit,
        "frequency_score": favorite.frequency_score,
        "last_used_at": favorite.last_used_at.isoformat()
        if favorite.last_used_at
        else None,
    }
