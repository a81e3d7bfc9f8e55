# =============================================================================
# Market Chatter API — Pass-Through Proxy
# =============================================================================
#
# POST /api/market-chatter forwards the query to the Market Chatter AI
# service and returns its JSON unchanged.
#
# DESIGN DECISION: Generic error message on failure. Upstream error text
# can contain internal hostnames or stack traces, so the frontend only
# ever sees "temporarily unavailable"; details go to the log.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from market_gateway.api.deps import get_market_chatter_client, usage_limit
from market_gateway.models.requests import MarketChatterRequest
from market_gateway.services.market_chatter import MarketChatterClient
from market_gateway.services.normalizer import InvalidUpstreamFormat
from market_gateway.services.upstream import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Market Chatter"])

UNAVAILABLE_MESSAGE = "Market chatter service temporarily unavailable"


@router.post(
    "/api/market-chatter",
    summary="Analyse market chatter for a query",
    dependencies=[Depends(usage_limit("market_chatter"))],
)
async def market_chatter_endpoint(
    request: MarketChatterRequest,
    client: MarketChatterClient = Depends(get_market_chatter_client),
) -> dict[str, Any]:
    try:
        return await client.fetch(
            request.query,
            lookback_hours=request.lookback_hours,
            max_results=request.max_results,
        )
    except (UpstreamError, InvalidUpstreamFormat) as e:
        logger.error("Market chatter failed for '%s': %s", request.query, e)
        raise HTTPException(status_code=502, detail=UNAVAILABLE_MESSAGE) from e
