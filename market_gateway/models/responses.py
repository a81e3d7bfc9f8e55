# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
# They serve as the contract between backend and frontend:
# 1. Ensure consistent response structure across all endpoints
# 2. Automatically serialized to JSON by FastAPI (by alias → camelCase
#    inside `data`)
# 3. Generate OpenAPI response schemas (visible at /docs)
#
# Every JSON envelope carries `status` ("success" / "error"), matching what
# the frontend already checks.
# =============================================================================

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from market_gateway.models.intelligence import NormalizedIntelligenceRecord


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class ErrorResponse(BaseModel):
    """Body of every error response."""

    status: Literal["error"] = "error"
    message: str


class MarketIntelligenceResponse(BaseModel):
    """
    Response for POST /api/market-intelligence.

    `cached` tells the frontend whether the record came from the
    in-memory cache (fast) or a fresh upstream analysis.
    """

    status: Literal["success"] = "success"
    data: NormalizedIntelligenceRecord
    cached: bool = Field(description="True when served from cache")


class CacheStatsResponse(BaseModel):
    """
    Response for GET /api/market-intelligence/cache/stats.

    Counts are a snapshot; reading stats never evicts entries.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_entries: int
    valid_entries: int
    expired_entries: int


class CacheClearedResponse(BaseModel):
    status: Literal["success"] = "success"
    message: str = "Market intelligence cache cleared"
