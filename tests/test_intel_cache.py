# =============================================================================
# Unit Tests — Market Intelligence Cache
# =============================================================================
#
# Pure in-memory tests. Time is controlled with a FakeClock so expiry can be
# simulated without sleeping.
#
# Test groups:
#   1. Keys & basic get/set
#   2. Expiry (lazy eviction on read)
#   3. TTL randomization
#   4. Periodic sweep & stats
#   5. Optional size cap
# =============================================================================

from __future__ import annotations

import math
import random

import pytest

from market_gateway.services.intel_cache import (
    DEFAULT_MAX_TTL_SECONDS,
    DEFAULT_MIN_TTL_SECONDS,
    CacheStats,
    ResponseCache,
)


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_cache(**kwargs) -> tuple[ResponseCache, FakeClock]:
    clock = FakeClock()
    return ResponseCache(clock=clock, rng=random.Random(42), **kwargs), clock


# ---------------------------------------------------------------------------
# 1. Keys & Basic Get/Set
# ---------------------------------------------------------------------------


class TestKeysAndLookup:
    def test_miss_before_set(self):
        cache, _ = _make_cache()
        assert cache.get("AAPL", "2024-01-01", "MODERATE") is None

    def test_hit_after_set(self):
        cache, _ = _make_cache()
        record = {"ticker": "AAPL"}
        cache.set("AAPL", "2024-01-01", "MODERATE", record)
        assert cache.get("AAPL", "2024-01-01", "MODERATE") is record

    def test_key_is_case_insensitive_for_subject_and_variant(self):
        cache, _ = _make_cache()
        cache.set("aapl", "2024-01-01", "moderate", "value")
        assert cache.get("AAPL", "2024-01-01", "MODERATE") == "value"
        assert cache.get("Aapl", "2024-01-01", "Moderate") == "value"
        assert len(cache) == 1

    def test_date_is_part_of_key(self):
        cache, _ = _make_cache()
        cache.set("AAPL", "2024-01-01", "MODERATE", "day1")
        assert cache.get("AAPL", "2024-01-02", "MODERATE") is None

    def test_variant_is_part_of_key(self):
        cache, _ = _make_cache()
        cache.set("AAPL", "2024-01-01", "LOW", "low")
        cache.set("AAPL", "2024-01-01", "HIGH", "high")
        assert cache.get("AAPL", "2024-01-01", "LOW") == "low"
        assert cache.get("AAPL", "2024-01-01", "HIGH") == "high"
        assert cache.get("AAPL", "2024-01-01", "MODERATE") is None

    def test_make_key_format(self):
        key = ResponseCache.make_key("tcs", "2024-06-01", "moderate")
        assert key == "TCS:2024-06-01:MODERATE"

    def test_set_overwrites_existing_value(self):
        cache, _ = _make_cache()
        cache.set("AAPL", "2024-01-01", "LOW", "old")
        cache.set("AAPL", "2024-01-01", "LOW", "new")
        assert cache.get("AAPL", "2024-01-01", "LOW") == "new"
        assert len(cache) == 1

    def test_tcs_scenario(self):
        cache, _ = _make_cache()
        record = {"sentiment": {"score": 0.7, "label": "positive"}}
        cache.set("TCS", "2024-06-01", "MODERATE", record)

        assert cache.get("tcs", "2024-06-01", "moderate") == record
        assert cache.stats() == CacheStats(
            total_entries=1, valid_entries=1, expired_entries=0,
        )

    def test_clear_drops_everything(self):
        cache, _ = _make_cache()
        cache.set("AAPL", "2024-01-01", "LOW", 1)
        cache.set("MSFT", "2024-01-01", "LOW", 2)
        cache.clear()
        assert len(cache) == 0
        assert cache.get("AAPL", "2024-01-01", "LOW") is None


# ---------------------------------------------------------------------------
# 2. Expiry
# ---------------------------------------------------------------------------


class TestExpiry:
    def test_entry_valid_before_min_ttl(self):
        cache, clock = _make_cache()
        cache.set("AAPL", "2024-01-01", "LOW", "v")
        clock.advance(DEFAULT_MIN_TTL_SECONDS - 1)
        assert cache.get("AAPL", "2024-01-01", "LOW") == "v"

    def test_expired_entry_returns_none_and_is_removed(self):
        cache, clock = _make_cache()
        cache.set("AAPL", "2024-01-01", "LOW", "v")
        clock.advance(DEFAULT_MAX_TTL_SECONDS + 1)

        assert len(cache) == 1  # still stored until read
        assert cache.get("AAPL", "2024-01-01", "LOW") is None
        assert len(cache) == 0

    def test_reset_ttl_on_overwrite(self):
        cache, clock = _make_cache()
        cache.set("AAPL", "2024-01-01", "LOW", "old")
        clock.advance(DEFAULT_MAX_TTL_SECONDS - 60)
        cache.set("AAPL", "2024-01-01", "LOW", "new")
        clock.advance(DEFAULT_MIN_TTL_SECONDS - 60)
        # The first write would have expired by now; the second has not
        assert cache.get("AAPL", "2024-01-01", "LOW") == "new"

    def test_short_ttl_override(self):
        cache, clock = _make_cache(min_ttl_seconds=1, max_ttl_seconds=2)
        cache.set("AAPL", "2024-01-01", "LOW", "v")
        clock.advance(2.5)
        assert cache.get("AAPL", "2024-01-01", "LOW") is None


# ---------------------------------------------------------------------------
# 3. TTL Randomization
# ---------------------------------------------------------------------------


class TestTtlRandomization:
    def test_ttls_within_bounds_and_varied(self):
        cache, clock = _make_cache()
        for i in range(500):
            cache.set(f"T{i}", "2024-01-01", "LOW", i)

        offsets = [entry.ttl_seconds for entry in cache._store.values()]
        assert len(offsets) == 500
        assert all(
            DEFAULT_MIN_TTL_SECONDS <= o < DEFAULT_MAX_TTL_SECONDS
            for o in offsets
        )
        assert len(set(offsets)) > 1

    def test_ttl_never_reaches_max_even_at_rng_upper_edge(self):
        class EdgeRandom(random.Random):
            def random(self):
                return math.nextafter(1.0, 0.0)

        clock = FakeClock()
        cache = ResponseCache(clock=clock, rng=EdgeRandom())
        cache.set("AAPL", "2024-01-01", "LOW", "v")
        entry = next(iter(cache._store.values()))
        assert entry.ttl_seconds < DEFAULT_MAX_TTL_SECONDS

        # At the max TTL measured from an epoch-sized clock the entry is gone
        clock.advance(DEFAULT_MAX_TTL_SECONDS)
        assert entry.is_expired(clock.now)
        assert cache.get("AAPL", "2024-01-01", "LOW") is None

    def test_entry_alive_just_before_its_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(clock=clock, rng=random.Random(7))
        cache.set("AAPL", "2024-01-01", "LOW", "v")
        entry = next(iter(cache._store.values()))

        clock.advance(entry.ttl_seconds - 1)
        assert cache.get("AAPL", "2024-01-01", "LOW") == "v"

    def test_invalid_ttl_range_rejected(self):
        with pytest.raises(ValueError):
            ResponseCache(min_ttl_seconds=100, max_ttl_seconds=50)
        with pytest.raises(ValueError):
            ResponseCache(min_ttl_seconds=0)


# ---------------------------------------------------------------------------
# 4. Periodic Sweep & Stats
# ---------------------------------------------------------------------------


class TestSweepAndStats:
    def test_stats_does_not_evict(self):
        cache, clock = _make_cache()
        cache.set("AAPL", "2024-01-01", "LOW", 1)
        clock.advance(DEFAULT_MAX_TTL_SECONDS + 1)
        cache.set("MSFT", "2024-01-01", "LOW", 2)

        stats = cache.stats()
        assert stats.total_entries == 2
        assert stats.valid_entries == 1
        assert stats.expired_entries == 1
        assert len(cache) == 2  # nothing removed

    def test_sweep_runs_when_size_hits_multiple(self):
        cache, clock = _make_cache(cleanup_every=10)
        for i in range(5):
            cache.set(f"OLD{i}", "2024-01-01", "LOW", i)
        clock.advance(DEFAULT_MAX_TTL_SECONDS + 1)

        for i in range(4):
            cache.set(f"NEW{i}", "2024-01-01", "LOW", i)
        assert len(cache) == 9  # no sweep yet

        cache.set("NEW4", "2024-01-01", "LOW", 4)  # size hits 10 → sweep
        assert len(cache) == 5
        assert cache.stats().expired_entries == 0

    def test_default_sweep_every_100(self):
        cache, clock = _make_cache()
        for i in range(50):
            cache.set(f"OLD{i}", "2024-01-01", "LOW", i)
        clock.advance(DEFAULT_MAX_TTL_SECONDS + 1)
        for i in range(50):
            cache.set(f"NEW{i}", "2024-01-01", "LOW", i)
        assert len(cache) == 50

    def test_no_sweep_between_multiples(self):
        cache, clock = _make_cache(cleanup_every=10)
        for i in range(3):
            cache.set(f"OLD{i}", "2024-01-01", "LOW", i)
        clock.advance(DEFAULT_MAX_TTL_SECONDS + 1)
        cache.set("NEW", "2024-01-01", "LOW", 0)
        assert len(cache) == 4


# ---------------------------------------------------------------------------
# 5. Optional Size Cap
# ---------------------------------------------------------------------------


class TestSizeCap:
    def test_unbounded_by_default(self):
        cache, _ = _make_cache()
        assert cache.max_entries is None
        for i in range(250):
            cache.set(f"T{i}", "2024-01-01", "LOW", i)
        assert len(cache) == 250

    def test_cap_evicts_entry_closest_to_expiry(self):
        cache, clock = _make_cache(max_entries=2)
        cache.set("A", "2024-01-01", "LOW", "a")
        clock.advance(60)
        cache.set("B", "2024-01-01", "LOW", "b")
        a_expiry = cache._store["A:2024-01-01:LOW"].expires_at
        b_expiry = cache._store["B:2024-01-01:LOW"].expires_at
        soonest = "A" if a_expiry <= b_expiry else "B"

        cache.set("C", "2024-01-01", "LOW", "c")

        assert len(cache) == 2
        assert cache.get(soonest, "2024-01-01", "LOW") is None
        assert cache.get("C", "2024-01-01", "LOW") == "c"

    def test_cap_prefers_dropping_expired_entries(self):
        cache, clock = _make_cache(max_entries=2)
        cache.set("A", "2024-01-01", "LOW", "a")
        clock.advance(DEFAULT_MAX_TTL_SECONDS + 1)
        cache.set("B", "2024-01-01", "LOW", "b")
        cache.set("C", "2024-01-01", "LOW", "c")

        assert cache.get("B", "2024-01-01", "LOW") == "b"
        assert cache.get("C", "2024-01-01", "LOW") == "c"

    def test_overwrite_at_cap_does_not_evict(self):
        cache, _ = _make_cache(max_entries=2)
        cache.set("A", "2024-01-01", "LOW", "a")
        cache.set("B", "2024-01-01", "LOW", "b")
        cache.set("A", "2024-01-01", "LOW", "a2")
        assert cache.get("A", "2024-01-01", "LOW") == "a2"
        assert cache.get("B", "2024-01-01", "LOW") == "b"
