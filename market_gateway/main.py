# =============================================================================
# FastAPI Application — Market Intelligence Gateway
# =============================================================================
#
# Entry point:
#   uvicorn market_gateway.main:app --reload
#
# The lifespan handler owns every long-lived component:
#   - one httpx.AsyncClient (shared connection pool for all upstreams)
#   - one ResponseCache (process-local, lost on restart)
#   - the upstream clients and the MarketIntelligenceService
# They live on `app.state` and reach handlers through api/deps.py, next to
# the Settings the app was built with (read by the usage limiter).
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from market_gateway.api.chatter import router as chatter_router
from market_gateway.api.intelligence import router as intelligence_router
from market_gateway.config import Settings, get_settings
from market_gateway.models.responses import ErrorResponse, HealthResponse
from market_gateway.services.agentic_client import AgenticIntelligenceClient
from market_gateway.services.intel_cache import ResponseCache
from market_gateway.services.intelligence import MarketIntelligenceService
from market_gateway.services.market_chatter import MarketChatterClient

logger = logging.getLogger(__name__)


def build_intel_cache(settings: Settings) -> ResponseCache:
    return ResponseCache(
        min_ttl_seconds=settings.intel_cache_min_ttl_seconds,
        max_ttl_seconds=settings.intel_cache_max_ttl_seconds,
        cleanup_every=settings.intel_cache_cleanup_every,
        max_entries=settings.intel_cache_max_entries,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application. Components are created in lifespan."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        http_client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
        )
        cache = build_intel_cache(settings)

        app.state.intel_cache = cache
        app.state.market_chatter_client = MarketChatterClient(
            http_client,
            settings.market_chatter_base_url,
            timeout=settings.market_chatter_timeout_seconds,
        )
        app.state.intelligence_service = MarketIntelligenceService(
            cache=cache,
            fetcher=AgenticIntelligenceClient(
                http_client,
                settings.agentic_ai_base_url,
                timeout=settings.agentic_ai_timeout_seconds,
            ),
            coalesce_requests=settings.intel_coalesce_requests,
            default_risk_profile=settings.default_risk_profile,
        )
        logger.info(
            "%s v%s started (cache TTL %.0f-%.0fs, coalescing %s)",
            settings.app_name,
            settings.app_version,
            settings.intel_cache_min_ttl_seconds,
            settings.intel_cache_max_ttl_seconds,
            "on" if settings.intel_coalesce_requests else "off",
        )
        try:
            yield
        finally:
            await http_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # -----------------------------------------------------------------------
    # Error bodies: {"status": "error", "message": "..."}
    # -----------------------------------------------------------------------

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(message=str(exc.detail)).model_dump(),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(message=message).model_dump(),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(
            version=settings.app_version, service=settings.app_name,
        )

    app.include_router(intelligence_router)
    app.include_router(chatter_router)
    return app


app = create_app()
