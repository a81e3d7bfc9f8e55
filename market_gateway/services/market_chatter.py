# =============================================================================
# Market Chatter Client — Social/News Chatter Analysis Proxy
# =============================================================================
#
# Proxies the external Market Chatter AI service. The response is passed
# through to the frontend untouched, and is NOT cached: chatter is
# time-sensitive and the service is cheap compared to the agentic one.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import httpx

from market_gateway.services.upstream import post_json

logger = logging.getLogger(__name__)

SERVICE_NAME = "Market Chatter AI"
CHATTER_PATH = "/api/v1/market-chatter"

DEFAULT_LOOKBACK_HOURS = 24
DEFAULT_MAX_RESULTS = 20


class MarketChatterClient:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        timeout: float = 20.0,
    ) -> None:
        self._http = http_client
        self._url = base_url.rstrip("/") + CHATTER_PATH
        self._timeout = timeout

    async def fetch(
        self,
        query: str,
        lookback_hours: int = DEFAULT_LOOKBACK_HOURS,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> dict[str, Any]:
        """
        Fetch chatter analysis for a search query (e.g. "Wipro", "AAPL").

        Raises:
            ValueError: empty query, negative lookback, or max_results < 1.
            UpstreamError: see services/upstream.py.
        """
        if not query or not query.strip():
            raise ValueError("Query is required and must be a non-empty string")
        if lookback_hours < 0:
            raise ValueError("lookback_hours must be a non-negative number")
        if max_results < 1:
            raise ValueError("max_results must be a positive number")

        query = query.strip()
        logger.info("Market chatter request started: query='%s'", query)
        return await post_json(
            self._http,
            self._url,
            {
                "query": query,
                "lookback_hours": lookback_hours,
                "max_results": max_results,
            },
            service=SERVICE_NAME,
            timeout=self._timeout,
        )
