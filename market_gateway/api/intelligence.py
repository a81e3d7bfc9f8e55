# =============================================================================
# Market Intelligence API — Cached Agentic Analysis Endpoint
# =============================================================================
#
# POST   /api/market-intelligence              → cached or fresh analysis
# GET    /api/market-intelligence/cache/stats  → cache diagnostics
# DELETE /api/market-intelligence/cache        → drop all cached entries
#
# This endpoint is thin by design: request validation, error mapping and
# response shaping. Cache-aside logic lives in services/intelligence.py.
#
# ERROR MAPPING:
#   UpstreamStatusError    → 502 Bad Gateway
#   InvalidUpstreamFormat  → 502 Bad Gateway
#   UpstreamUnavailable    → 503 Service Unavailable
#   UpstreamTimeout        → 504 Gateway Timeout
#   ValueError             → 400 Bad Request
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from market_gateway.api.deps import (
    get_intel_cache,
    get_intelligence_service,
    usage_limit,
)
from market_gateway.models.requests import MarketIntelligenceRequest
from market_gateway.models.responses import (
    CacheClearedResponse,
    CacheStatsResponse,
    MarketIntelligenceResponse,
)
from market_gateway.services.intel_cache import ResponseCache
from market_gateway.services.intelligence import MarketIntelligenceService
from market_gateway.services.normalizer import InvalidUpstreamFormat
from market_gateway.services.upstream import (
    UpstreamError,
    UpstreamTimeout,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/market-intelligence", tags=["Market Intelligence"])


# ---------------------------------------------------------------------------
# POST /api/market-intelligence — Analysis for one ticker
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=MarketIntelligenceResponse,
    summary="Get market intelligence for a ticker",
    description=(
        "Returns sentiment, bull/bear case and risk suitability for a "
        "ticker. Results are cached for 15-30 minutes per ticker, day and "
        "risk profile; `cached` reports whether this response was a hit."
    ),
    dependencies=[Depends(usage_limit("market_intelligence"))],
)
async def market_intelligence_endpoint(
    request: MarketIntelligenceRequest,
    service: MarketIntelligenceService = Depends(get_intelligence_service),
) -> MarketIntelligenceResponse:
    logger.info(
        "Market intelligence request: ticker=%s, risk_profile=%s",
        request.ticker,
        request.risk_profile,
    )

    try:
        result = await service.get_intelligence(
            request.ticker, request.risk_profile,
        )
    except InvalidUpstreamFormat as e:
        logger.error("Upstream returned an invalid payload: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except UpstreamTimeout as e:
        raise HTTPException(status_code=504, detail=str(e)) from e
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    return MarketIntelligenceResponse(data=result.record, cached=result.cached)


# ---------------------------------------------------------------------------
# Cache operations
# ---------------------------------------------------------------------------


@router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
    summary="Market intelligence cache statistics",
)
async def cache_stats_endpoint(
    cache: ResponseCache = Depends(get_intel_cache),
) -> CacheStatsResponse:
    stats = cache.stats()
    return CacheStatsResponse(
        total_entries=stats.total_entries,
        valid_entries=stats.valid_entries,
        expired_entries=stats.expired_entries,
    )


@router.delete(
    "/cache",
    response_model=CacheClearedResponse,
    summary="Clear the market intelligence cache",
)
async def clear_cache_endpoint(
    cache: ResponseCache = Depends(get_intel_cache),
) -> CacheClearedResponse:
    cache.clear()
    return CacheClearedResponse()
