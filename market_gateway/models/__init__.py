# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Defines request/response schemas for the API and the normalized market
# intelligence record that is cached and served to the frontend.
#
# DESIGN DECISION: The normalized record (intelligence.py) is separate from
# the response envelopes (responses.py). The record is what gets cached;
# the envelope adds per-request fields such as `cached`.
# =============================================================================
