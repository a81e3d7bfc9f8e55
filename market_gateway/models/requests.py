# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API.
# FastAPI uses them for:
# 1. Request body validation (rejected with a 400 error body, see main.py)
# 2. OpenAPI documentation generation (visible at /docs)
# 3. Type hints for IDE autocompletion in route handlers
# =============================================================================

from pydantic import BaseModel, Field, field_validator


class MarketIntelligenceRequest(BaseModel):
    """
    Request body for POST /api/market-intelligence.

    Example:
        {
            "ticker": "TCS",
            "risk_profile": "Medium"
        }
    """

    # Symbol or well-known company name ("Infosys" resolves to INFY)
    ticker: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Ticker symbol or company name",
        examples=["TCS"],
    )

    # Optional: subscriber risk profile. Accepts Low/Medium/High as stored
    # by the frontend as well as LOW/MODERATE/HIGH. Defaults to MODERATE.
    risk_profile: str | None = Field(
        default=None,
        max_length=20,
        description="Risk profile (LOW, MODERATE/MEDIUM, HIGH)",
        examples=["MODERATE"],
    )

    @field_validator("ticker")
    @classmethod
    def ticker_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Ticker is required")
        return value.strip()


class MarketChatterRequest(BaseModel):
    """
    Request body for POST /api/market-chatter.

    Example:
        {
            "query": "Wipro",
            "lookback_hours": 24,
            "max_results": 20
        }
    """

    query: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Search query (company name or symbol)",
        examples=["Wipro"],
    )
    lookback_hours: int = Field(
        default=24,
        ge=0,
        le=24 * 30,
        description="How many hours of chatter to analyse",
    )
    max_results: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum number of chatter items to return",
    )

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Query is required and must be a non-empty string")
        return value.strip()
