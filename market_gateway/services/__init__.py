# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Contains the core business logic, separated from API handlers:
#   - intel_cache.py: In-memory response cache (randomized TTL, lazy expiry)
#   - normalizer.py: Upstream payload → NormalizedIntelligenceRecord
#   - intelligence.py: Cache-aside orchestration (optional single-flight)
#   - upstream.py: Shared POST helper and classified upstream errors
#   - agentic_client.py: Agentic AI analysis service client
#   - market_chatter.py: Market Chatter AI service client
#   - symbols.py: NSE symbol and risk-profile canonicalisation
#   - rate_limiter.py: Redis sliding-window usage limiter
# =============================================================================
