# =============================================================================
# Agentic Intelligence Client — Upstream Market Analysis Service
# =============================================================================
#
# Thin async client for the external agentic AI service that produces the
# per-ticker market intelligence (sentiment, bull/bear case, risk
# suitability). Responses are returned raw; normalisation and caching
# happen in services/intelligence.py.
#
# The service runs a multi-step LLM pipeline per request, so calls are slow
# (tens of seconds, sometimes minutes). Default timeout is 2 minutes.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import httpx

from market_gateway.services.upstream import post_json

logger = logging.getLogger(__name__)

SERVICE_NAME = "Agentic AI"
QUERY_PATH = "/api/v1/query"


class AgenticIntelligenceClient:
    """
    Fetches raw market intelligence for a ticker and risk profile.

    The httpx client is owned by the caller (the application lifespan),
    so one connection pool is shared across requests.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        timeout: float = 120.0,
    ) -> None:
        self._http = http_client
        self._url = base_url.rstrip("/") + QUERY_PATH
        self._timeout = timeout

    async def fetch(self, ticker: str, risk_profile: str) -> dict[str, Any]:
        """
        Query the service for one ticker.

        Raises:
            ValueError: ticker or risk_profile is empty.
            UpstreamError: see services/upstream.py.
            InvalidUpstreamFormat: the body is not a JSON object.
        """
        if not ticker or not ticker.strip():
            raise ValueError("Ticker is required")
        if not risk_profile or not risk_profile.strip():
            raise ValueError("Risk profile is required")

        payload = {
            "ticker": ticker.strip().upper(),
            "subscriber_risk_profile": risk_profile.strip().upper(),
        }
        logger.info(
            "Fetching market intelligence: ticker=%s, risk_profile=%s",
            payload["ticker"],
            payload["subscriber_risk_profile"],
        )
        return await post_json(
            self._http,
            self._url,
            payload,
            service=SERVICE_NAME,
            timeout=self._timeout,
        )
