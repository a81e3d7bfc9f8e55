# =============================================================================
# API Dependencies — FastAPI Dependency Injection for Shared Components
# =============================================================================
#
# Route handlers never import the cache or the upstream clients directly.
# The lifespan handler in main.py builds them once and stores them on
# `app.state`; the dependencies below hand them to handlers.
#
# DESIGN DECISION: Dependencies over module globals. Tests (and any future
# per-tenant setup) can swap components via `app.dependency_overrides` or by
# building an app with their own state, without patching imports.
# =============================================================================

from __future__ import annotations

from collections.abc import Collection

from fastapi import Depends, Request

from market_gateway.config import Settings
from market_gateway.services.intel_cache import ResponseCache
from market_gateway.services.intelligence import MarketIntelligenceService
from market_gateway.services.market_chatter import MarketChatterClient
from market_gateway.services.rate_limiter import check_rate_limit

CLIENT_ID_HEADER = "X-Client-Id"


def get_app_settings(request: Request) -> Settings:
    """The Settings instance the application was built with."""
    return request.app.state.settings


def get_intel_cache(request: Request) -> ResponseCache:
    """The application's shared market intelligence cache."""
    return request.app.state.intel_cache


def get_intelligence_service(request: Request) -> MarketIntelligenceService:
    return request.app.state.intelligence_service


def get_market_chatter_client(request: Request) -> MarketChatterClient:
    return request.app.state.market_chatter_client


def get_client_id(
    request: Request, trusted_proxies: Collection[str] = (),
) -> str | None:
    """
    Identify the caller for usage limiting.

    The remote address is the identity. The X-Client-Id header (user id or
    demo session id set by the frontend) replaces it only when the request
    comes from one of `trusted_proxies`.
    """
    remote = request.client.host if request.client is not None else None
    if remote is not None and remote in trusted_proxies:
        forwarded = request.headers.get(CLIENT_ID_HEADER, "").strip()
        if forwarded:
            return forwarded
    return remote


def usage_limit(scope: str):
    """
    Build a dependency enforcing the per-client usage limit for `scope`.

    Usage:
        @router.post("/...", dependencies=[Depends(usage_limit("market_chatter"))])
    """

    async def _check(
        request: Request,
        config: Settings = Depends(get_app_settings),
    ) -> None:
        client_id = get_client_id(request, config.trusted_proxies)
        await check_rate_limit(client_id, scope, config)

    return _check
