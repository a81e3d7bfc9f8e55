# =============================================================================
# Market Intelligence Service — Cache-Aside Orchestration
# =============================================================================
#
# Ties the pieces together for one request:
#
#   normalise ticker/profile → cache.get(ticker, today, profile)
#     ├── hit  → return (cached=True)
#     └── miss → fetcher.fetch() → normalize → cache.set() → return
#
# DESIGN DECISION: The record is stored under its own `analysisDate` (the
# date the upstream analysis reports), falling back to today's date.
# Lookups always use today's date, so an analysis dated yesterday is not
# served from cache today.
#
# DESIGN DECISION: Request coalescing is optional and OFF by default.
# Without it, two concurrent misses for the same key both call upstream
# and the later `set` wins. That is a known limitation we accept for
# simplicity. With `coalesce_requests=True`, concurrent misses share one
# in-flight task keyed by the cache key (single-flight).
#
# Errors (upstream failures, InvalidUpstreamFormat) propagate unchanged.
# Nothing is cached on error.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

from market_gateway.models.intelligence import NormalizedIntelligenceRecord
from market_gateway.services.intel_cache import ResponseCache
from market_gateway.services.normalizer import normalize_market_intelligence
from market_gateway.services.symbols import (
    DEFAULT_RISK_PROFILE,
    normalize_risk_profile,
    normalize_ticker,
)

logger = logging.getLogger(__name__)


class IntelligenceFetcher(Protocol):
    """Anything that can fetch a raw intelligence payload upstream."""

    async def fetch(self, ticker: str, risk_profile: str) -> dict[str, Any]:
        ...


@dataclass
class IntelligenceResult:
    record: NormalizedIntelligenceRecord
    cached: bool


def _utc_today() -> str:
    return datetime.now(UTC).date().isoformat()


class MarketIntelligenceService:
    """
    Cache-aside access to normalized market intelligence.

    Args:
        cache: The shared ResponseCache.
        fetcher: Upstream collaborator, called only on cache miss.
        coalesce_requests: Share one upstream fetch between concurrent
            misses for the same key.
        default_risk_profile: Used when the caller gives no profile.
        today: Returns today's date as YYYY-MM-DD. Injectable for tests.
    """

    def __init__(
        self,
        cache: ResponseCache,
        fetcher: IntelligenceFetcher,
        coalesce_requests: bool = False,
        default_risk_profile: str = DEFAULT_RISK_PROFILE,
        today: Callable[[], str] = _utc_today,
    ) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.coalesce_requests = coalesce_requests
        self.default_risk_profile = normalize_risk_profile(default_risk_profile)
        self._today = today
        self._in_flight: dict[str, asyncio.Task[NormalizedIntelligenceRecord]] = {}

    async def get_intelligence(
        self,
        ticker: str,
        risk_profile: str | None = None,
        analysis_date: str | None = None,
    ) -> IntelligenceResult:
        """
        Return normalized intelligence, from cache when possible.

        Raises:
            ValueError: blank ticker.
            UpstreamError / InvalidUpstreamFormat: from the fetch or the
                normalizer, on cache miss.
        """
        if not ticker or not ticker.strip():
            raise ValueError("Ticker is required")

        symbol = normalize_ticker(ticker)
        profile = normalize_risk_profile(risk_profile, self.default_risk_profile)
        date = analysis_date or self._today()

        cached = self.cache.get(symbol, date, profile)
        if cached is not None:
            logger.info("Cache hit for %s on %s (%s)", symbol, date, profile)
            return IntelligenceResult(record=cached, cached=True)

        logger.info("Cache miss for %s on %s (%s)", symbol, date, profile)

        if not self.coalesce_requests:
            record = await self._fetch_and_store(symbol, profile, date)
            return IntelligenceResult(record=record, cached=False)

        key = ResponseCache.make_key(symbol, date, profile)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(
                self._fetch_and_store(symbol, profile, date)
            )
            self._in_flight[key] = task
            task.add_done_callback(
                lambda done: self._finish_in_flight(key, done)
            )
        else:
            logger.info("Joining in-flight fetch for %s", key)

        # shield: one cancelled waiter must not cancel the shared fetch
        record = await asyncio.shield(task)
        return IntelligenceResult(record=record, cached=False)

    def _finish_in_flight(self, key: str, task: asyncio.Future) -> None:
        self._in_flight.pop(key, None)
        # retrieve the error; every waiter may have been cancelled
        if not task.cancelled() and task.exception() is not None:
            logger.warning(
                "Shared fetch for %s failed: %s", key, task.exception(),
            )

    async def _fetch_and_store(
        self, symbol: str, profile: str, date: str,
    ) -> NormalizedIntelligenceRecord:
        raw = await self.fetcher.fetch(symbol, profile)
        record = normalize_market_intelligence(
            raw, risk_profile=profile, today=date,
        )
        self.cache.set(symbol, record.analysis_date or date, profile, record)
        logger.info(
            "Fetched and cached intelligence for %s (analysis date %s)",
            symbol,
            record.analysis_date,
        )
        return record
