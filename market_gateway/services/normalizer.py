# =============================================================================
# Market Intelligence Normalizer — Upstream Payload → Stable Record
# =============================================================================
#
# The agentic analysis service returns LLM-generated fields whose types are
# not stable: `bull_case` / `bear_case` arrive either as JSON text or as an
# already-decoded object, numbers are sometimes strings, and optional
# sections are frequently missing. This module isolates that instability so
# the cache and every consumer deal with one deterministic shape.
#
# FAILURE MODEL:
#   - Missing top-level `data` → InvalidUpstreamFormat (the only fail-fast).
#   - Anything below `data` degrades to defaults. A malformed bull or bear
#     case becomes a placeholder whose summary is the raw text; one bad case
#     never affects the other.
#
# The functions here are pure: no I/O, no shared state.
# =============================================================================

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from market_gateway.models.intelligence import (
    BearCase,
    BullCase,
    DataQuality,
    IntelligenceMetadata,
    NormalizedIntelligenceRecord,
    RiskAssessment,
    Sentiment,
    Suitability,
)

logger = logging.getLogger(__name__)

# Per-profile suitability views in the upstream risk_assessment object
_PROFILE_VIEWS = {
    "LOW": "low_risk_subscriber_view",
    "MODERATE": "moderate_risk_subscriber_view",
    "HIGH": "high_risk_subscriber_view",
}
_FALLBACK_VIEW = "moderate_risk_subscriber_view"


class InvalidUpstreamFormat(ValueError):
    """The upstream payload has no usable `data` section."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_market_intelligence(
    raw: Any,
    risk_profile: str | None = None,
    today: str | None = None,
) -> NormalizedIntelligenceRecord:
    """
    Convert a raw agentic-service response into a NormalizedIntelligenceRecord.

    Args:
        raw: The wrapper object returned by the service, expected to hold
            a `data` mapping.
        risk_profile: LOW / MODERATE / HIGH. Selects which per-profile
            suitability view to use. Defaults to the moderate view.
        today: Date used when the payload has no `analysis_date`
            (defaults to the current UTC date, YYYY-MM-DD).

    Raises:
        InvalidUpstreamFormat: `raw` is not a mapping or has no `data`.
    """
    if not isinstance(raw, Mapping) or raw.get("data") is None:
        raise InvalidUpstreamFormat(
            "Invalid response format from agentic AI service"
        )

    data = raw["data"]
    if not isinstance(data, Mapping):
        raise InvalidUpstreamFormat(
            f"Expected 'data' to be an object, got {type(data).__name__}"
        )

    bull = _parse_case(data.get("bull_case"), "bull_case", "key_signals")
    bear = _parse_case(data.get("bear_case"), "bear_case", "key_risks")

    risk_raw = data.get("risk_assessment")
    risk_raw = dict(risk_raw) if isinstance(risk_raw, Mapping) else {}

    return NormalizedIntelligenceRecord(
        ticker=_as_str(data.get("ticker"), ""),
        analysis_date=_as_str(
            data.get("analysis_date"),
            today or datetime.now(UTC).date().isoformat(),
        ),
        sentiment=Sentiment(
            score=_as_float(data.get("sentiment_score"), 0.0),
            label=_as_str(data.get("sentiment_label"), "neutral"),
            summary=_as_str(
                data.get("market_chatter_summary"),
                "No market chatter summary available",
            ),
        ),
        bull_case=BullCase(
            summary=_as_str(bull.get("summary"), "No bull case data available"),
            signals=_as_list(bull.get("key_signals")),
            data_quality=bull.get("data_quality") or {},
        ),
        bear_case=BearCase(
            summary=_as_str(bear.get("summary"), "No bear case data available"),
            risks=_as_list(bear.get("key_risks")),
            data_quality=bear.get("data_quality") or {},
        ),
        risk_assessment=RiskAssessment(
            overall_risk=_as_str(risk_raw.get("overall_risk"), "UNKNOWN"),
            suitability=_suitability(risk_raw, risk_profile),
            full_assessment=risk_raw,
        ),
        data_quality=_data_quality(data.get("latest_financial_metrics")),
        metadata=IntelligenceMetadata(
            processing_time_ms=_as_float(data.get("processing_time_ms"), 0),
            ingestion_triggered=data.get("ingestion_triggered") is True,
        ),
    )


# ---------------------------------------------------------------------------
# Sub-payload Parsing
# ---------------------------------------------------------------------------


def _parse_case(value: Any, field_name: str, list_key: str) -> dict[str, Any]:
    """
    Decode a bull/bear case that may be JSON text or an object.

    Returns an empty dict (all defaults) when the case is missing, empty, or
    valid JSON that is not an object (e.g. "null"). Text that is not valid
    JSON, whitespace-only text included, becomes a degraded placeholder
    with the raw text as summary.
    """
    if isinstance(value, Mapping):
        return dict(value)
    if not isinstance(value, str) or not value:
        return {}

    try:
        decoded = json.loads(value)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse %s: %s", field_name, e)
        return {"summary": value, list_key: [], "data_quality": {}}

    if not isinstance(decoded, Mapping):
        logger.debug(
            "Parsed %s is a %s, using defaults",
            field_name,
            type(decoded).__name__,
        )
        return {}
    return dict(decoded)


def _suitability(
    risk_raw: Mapping[str, Any], risk_profile: str | None,
) -> Suitability:
    view_key = _PROFILE_VIEWS.get((risk_profile or "").upper(), _FALLBACK_VIEW)
    view = risk_raw.get(view_key)
    if not isinstance(view, Mapping):
        view = risk_raw.get(_FALLBACK_VIEW)
    if not isinstance(view, Mapping):
        return Suitability()

    warning = view.get("warning")
    return Suitability(
        is_match=view.get("is_match") is not False,
        explanation=_as_str(view.get("explanation"), ""),
        warning=str(warning) if warning else None,
    )


def _data_quality(metrics: Any) -> DataQuality:
    if not isinstance(metrics, Mapping):
        metrics = {}
    return DataQuality(
        financials_available=metrics.get("available") is True,
        reason=_as_str(metrics.get("reason"), "Financial data status unknown"),
        details=_as_str(metrics.get("details"), ""),
        suggestions=_as_list(metrics.get("suggestions")),
    )


# ---------------------------------------------------------------------------
# Scalar Coercion
# ---------------------------------------------------------------------------


def _as_str(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    return value if isinstance(value, str) else str(value)


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []
