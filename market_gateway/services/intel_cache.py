# =============================================================================
# Market Intelligence Cache — In-Memory TTL Cache with Lazy Eviction
# =============================================================================
#
# Memoizes normalized market-intelligence records so repeated requests for
# the same ticker/day/risk profile don't hit the slow, rate-limited agentic
# analysis service again.
#
# Cache key: TICKER:analysis_date:RISK_PROFILE (ticker and profile are
# upper-cased, the date is used verbatim).
#
# DESIGN DECISION: Randomized TTL. Every write draws a fresh TTL uniformly
# from [min_ttl, max_ttl). Entries written in a burst (e.g. market open)
# therefore expire spread out over 15 minutes instead of all at once, which
# avoids a stampede of re-fetches against the upstream service.
#
# DESIGN DECISION: Lazy + periodic eviction. Expired entries are removed
# when read, and the whole store is swept whenever its size after an insert
# is a multiple of `cleanup_every`. Keys nobody reads again are still
# collected without a background task.
#
# DESIGN DECISION: Explicit instance, not a module global. The application
# builds one cache in its lifespan handler and injects it into handlers,
# so tests get isolated caches with a fake clock.
#
# The lock makes every operation atomic. No operation awaits, so on the
# event loop it is never contended; it matters only if the cache is shared
# with worker threads.
# =============================================================================

from __future__ import annotations

import logging
import math
import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MIN_TTL_SECONDS = 15 * 60
DEFAULT_MAX_TTL_SECONDS = 30 * 60
DEFAULT_CLEANUP_EVERY = 100


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CacheEntry:
    """A cached value with its insertion time and drawn TTL (seconds)."""

    value: Any
    created_at: float
    ttl_seconds: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        # age-based; created_at + ttl can round up at epoch-sized clocks
        return now - self.created_at > self.ttl_seconds


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of the cache contents partitioned by expiry."""

    total_entries: int
    valid_entries: int
    expired_entries: int


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ResponseCache:
    """
    Process-local cache keyed by (subject, analysis date, profile variant).

    Args:
        min_ttl_seconds: Lower bound (inclusive) of the per-entry TTL.
        max_ttl_seconds: Upper bound (exclusive) of the per-entry TTL.
        cleanup_every: Sweep expired entries when the store size after an
            insert is a multiple of this value.
        max_entries: Optional size cap. None (default) keeps the store
            unbounded and purely time-based.
        clock: Returns the current time in seconds. Injectable for tests.
        rng: Random source for TTLs. Injectable for tests.
    """

    def __init__(
        self,
        min_ttl_seconds: float = DEFAULT_MIN_TTL_SECONDS,
        max_ttl_seconds: float = DEFAULT_MAX_TTL_SECONDS,
        cleanup_every: int = DEFAULT_CLEANUP_EVERY,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        if min_ttl_seconds <= 0 or max_ttl_seconds < min_ttl_seconds:
            raise ValueError(
                f"Invalid TTL range [{min_ttl_seconds}, {max_ttl_seconds})"
            )
        if cleanup_every < 1:
            raise ValueError("cleanup_every must be at least 1")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1 when set")

        self.min_ttl_seconds = min_ttl_seconds
        self.max_ttl_seconds = max_ttl_seconds
        self.cleanup_every = cleanup_every
        self.max_entries = max_entries
        self._clock = clock
        self._rng = rng or random.Random()
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(subject: str, analysis_date: str, profile_variant: str) -> str:
        """Build the composite key. Subject and variant are case-folded."""
        return f"{subject.upper()}:{analysis_date}:{profile_variant.upper()}"

    def get(
        self, subject: str, analysis_date: str, profile_variant: str,
    ) -> Any | None:
        """
        Return the cached value, or None on miss or expiry.

        An expired entry is deleted by this call.
        """
        key = self.make_key(subject, analysis_date, profile_variant)
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._store[key]
                return None
            return entry.value

    def set(
        self,
        subject: str,
        analysis_date: str,
        profile_variant: str,
        value: Any,
    ) -> None:
        """
        Store a value under a freshly randomized TTL.

        Overwrites any existing entry for the key. The previous TTL is not
        carried over.
        """
        key = self.make_key(subject, analysis_date, profile_variant)
        with self._lock:
            now = self._clock()
            if (
                self.max_entries is not None
                and key not in self._store
                and len(self._store) >= self.max_entries
            ):
                self._make_room(now)

            self._store[key] = CacheEntry(
                value=value,
                created_at=now,
                ttl_seconds=self._draw_ttl(),
            )

            if len(self._store) % self.cleanup_every == 0:
                self._sweep(now)

    def clear(self) -> None:
        """Drop every entry. For tests and operational resets."""
        with self._lock:
            self._store.clear()
        logger.info("Market intelligence cache cleared")

    def stats(self) -> CacheStats:
        """Count valid and expired entries without evicting anything."""
        with self._lock:
            now = self._clock()
            expired = sum(
                1 for entry in self._store.values() if entry.is_expired(now)
            )
            total = len(self._store)
        return CacheStats(
            total_entries=total,
            valid_entries=total - expired,
            expired_entries=expired,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    # -----------------------------------------------------------------------
    # Internals (caller holds the lock)
    # -----------------------------------------------------------------------

    def _draw_ttl(self) -> float:
        span = self.max_ttl_seconds - self.min_ttl_seconds
        ttl = self.min_ttl_seconds + self._rng.random() * span
        # float rounding can land on the exclusive upper bound
        if span > 0 and ttl >= self.max_ttl_seconds:
            ttl = math.nextafter(self.max_ttl_seconds, self.min_ttl_seconds)
        return ttl

    def _sweep(self, now: float) -> int:
        expired_keys = [
            key for key, entry in self._store.items() if entry.is_expired(now)
        ]
        for key in expired_keys:
            del self._store[key]
        if expired_keys:
            logger.debug(
                "Swept %d expired cache entries (%d remaining)",
                len(expired_keys),
                len(self._store),
            )
        return len(expired_keys)

    def _make_room(self, now: float) -> None:
        if self._sweep(now):
            return
        soonest = min(self._store, key=lambda k: self._store[k].expires_at)
        del self._store[soonest]
        logger.debug("Cache full, evicted '%s'", soonest)
