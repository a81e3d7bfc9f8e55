# =============================================================================
# Normalized Market Intelligence — Pydantic V2 Schema
# =============================================================================
#
# The stable internal shape that every upstream analysis payload is
# converted into (see services/normalizer.py). Cached as-is and returned to
# the frontend, so it is the contract consumers rely on.
#
# DESIGN DECISION: Every field has a default. Consumers never need to
# null-check nested objects, and the normalizer can build a valid record
# even from a nearly empty upstream payload.
#
# DESIGN DECISION: snake_case in Python, camelCase on the wire. The
# frontend already consumes camelCase keys (`bullCase`, `isMatch`, ...).
# FastAPI serializes response models by alias, and `populate_by_name`
# lets Python code construct models with the snake_case names.
# =============================================================================

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Sentiment(CamelModel):
    score: float = 0.0
    label: str = "neutral"
    summary: str = "No market chatter summary available"


class BullCase(CamelModel):
    summary: str = "No bull case data available"
    signals: list[Any] = Field(default_factory=list)
    data_quality: Any = Field(default_factory=dict)


class BearCase(CamelModel):
    summary: str = "No bear case data available"
    risks: list[Any] = Field(default_factory=list)
    data_quality: Any = Field(default_factory=dict)


class Suitability(CamelModel):
    """Whether the analysed asset suits the subscriber's risk profile."""

    is_match: bool = True
    explanation: str = "Risk assessment completed"
    warning: str | None = None


class RiskAssessment(CamelModel):
    overall_risk: str = "UNKNOWN"
    suitability: Suitability = Field(default_factory=Suitability)
    # Raw upstream object, kept for fields not modelled yet
    full_assessment: dict[str, Any] = Field(default_factory=dict)


class DataQuality(CamelModel):
    """Availability of financial statements behind the analysis."""

    financials_available: bool = False
    reason: str = "Financial data status unknown"
    details: str = ""
    suggestions: list[Any] = Field(default_factory=list)


class IntelligenceMetadata(CamelModel):
    processing_time_ms: float = 0
    ingestion_triggered: bool = False


class NormalizedIntelligenceRecord(CamelModel):
    """
    Fully-populated market intelligence for one ticker on one day.

    Example (wire format):
        {
            "ticker": "TCS",
            "analysisDate": "2024-06-01",
            "sentiment": {"score": 0.7, "label": "positive", "summary": "..."},
            "bullCase": {"summary": "...", "signals": [], "dataQuality": {}},
            ...
        }
    """

    ticker: str = ""
    analysis_date: str
    sentiment: Sentiment = Field(default_factory=Sentiment)
    bull_case: BullCase = Field(default_factory=BullCase)
    bear_case: BearCase = Field(default_factory=BearCase)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    data_quality: DataQuality = Field(default_factory=DataQuality)
    metadata: IntelligenceMetadata = Field(default_factory=IntelligenceMetadata)
