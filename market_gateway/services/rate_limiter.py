# =============================================================================
# Usage Limiter — Redis-Based Per-Client Sliding Window
# =============================================================================
#
# Limits how often a single client can hit the expensive proxy endpoints.
# Every hit is recorded in a Redis sorted set (score = timestamp) keyed by
# scope and client. Hits older than the window are pruned before counting.
#
# DESIGN DECISION: Sliding window over fixed window. A fixed window lets a
# client spend two budgets back to back around the boundary.
#
# DESIGN DECISION: Graceful degradation. If Redis is unavailable, usage
# limiting is bypassed (log a warning, allow the request). A Redis outage
# must not take the gateway down with it.
#
# Budgets are per (scope, client): market intelligence and market chatter
# are counted separately and may have different limits (see
# Settings.usage_limit_for).
# =============================================================================

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import HTTPException
from redis.exceptions import RedisError

from market_gateway.config import Settings

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60

# One lazily created client per Redis URL
_redis_clients: dict[str, Any] = {}


def _get_rate_limit_redis(redis_url: str):
    """Lazily create and cache the async Redis client for `redis_url`."""
    client = _redis_clients.get(redis_url)
    if client is None:
        import redis.asyncio as aioredis
        client = aioredis.from_url(redis_url, decode_responses=True)
        _redis_clients[redis_url] = client
    return client


def usage_key(scope: str, client_id: str) -> str:
    return f"ratelimit:{scope}:{client_id}"


async def _record_hit(redis_client, key: str, now: float) -> int:
    """Record one hit and return how many hits preceded it in the window."""
    pipe = redis_client.pipeline()
    pipe.zremrangebyscore(key, 0, now - WINDOW_SECONDS)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, WINDOW_SECONDS + 10)
    _, previous_hits, _, _ = await pipe.execute()
    return previous_hits


async def check_rate_limit(
    client_id: str | None,
    scope: str,
    config: Settings,
) -> None:
    """
    Enforce the per-client budget for `scope`.

    Raises:
        HTTPException 429: Budget spent (includes Retry-After header).

    No-op when usage limiting is disabled in `config`, the client could not
    be identified, or Redis is unavailable.
    """
    if not config.rate_limit_enabled or not client_id:
        return

    limit = config.usage_limit_for(scope)
    key = usage_key(scope, client_id)

    try:
        previous_hits = await _record_hit(
            _get_rate_limit_redis(config.redis_url), key, time.time(),
        )
    except (RedisError, OSError) as e:
        logger.warning(
            "Usage limiter unavailable (%s). Allowing %s request from %s.",
            e, scope, client_id,
        )
        return

    if previous_hits >= limit:
        logger.info(
            "Usage limit hit: scope=%s, client=%s, limit=%d",
            scope, client_id, limit,
        )
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Limit: {limit} requests/minute.",
            headers={"Retry-After": str(WINDOW_SECONDS)},
        )
