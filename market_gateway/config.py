# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# DESIGN DECISION: We use Pydantic V2's `BaseSettings` for configuration.
# Values are loaded in this priority order (highest first):
#   1. Environment variables (e.g., `AGENTIC_AI_BASE_URL=...`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from market_gateway.config import get_settings
#   print(get_settings().agentic_ai_base_url)
# =============================================================================

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults point at the hosted upstream services so the gateway runs
    locally without a .env file.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Market Intelligence Gateway"
    app_version: str = "0.1.0"
    debug: bool = True
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Upstream Services
    # -------------------------------------------------------------------------
    # The agentic analysis service is slow (LLM pipelines behind it) and
    # rate-limited, hence the long timeout and the response cache below.
    # Market chatter is cheaper and proxied without caching.
    # -------------------------------------------------------------------------
    agentic_ai_base_url: str = "https://postgres-host-localhost.onrender.com"
    agentic_ai_timeout_seconds: float = 120.0

    market_chatter_base_url: str = (
        "https://market-chatter-ai-ebg9bnfjcte9f6ds.centralus-01.azurewebsites.net"
    )
    market_chatter_timeout_seconds: float = 20.0

    # -------------------------------------------------------------------------
    # Market Intelligence Cache
    # -------------------------------------------------------------------------
    # Each entry lives for a uniformly random TTL in [min, max) so entries
    # written together do not all expire together.
    #
    # cleanup_every: expired entries are swept when the store size after an
    # insert is a multiple of this number.
    # max_entries: optional size cap. None = unbounded (time-based only).
    # coalesce_requests: share one upstream fetch between concurrent misses
    # for the same key. Off by default (last write wins).
    # -------------------------------------------------------------------------
    intel_cache_min_ttl_seconds: float = 15 * 60
    intel_cache_max_ttl_seconds: float = 30 * 60
    intel_cache_cleanup_every: int = 100
    intel_cache_max_entries: int | None = None
    intel_coalesce_requests: bool = False

    default_risk_profile: str = "MODERATE"

    # -------------------------------------------------------------------------
    # Usage Limiting
    # -------------------------------------------------------------------------
    # Per-client sliding window backed by Redis. Disabled during local dev.
    # If Redis is unreachable the limiter lets requests through.
    #
    # rate_limit_<scope>_rpm overrides rate_limit_rpm for one endpoint group
    # (scopes: market_intelligence, market_chatter).
    #
    # Clients are identified by remote address. The X-Client-Id header is
    # honoured only on requests arriving from one of `trusted_proxies`
    # (e.g. the frontend server forwarding its user id).
    # -------------------------------------------------------------------------
    redis_url: str = "redis://localhost:6379/2"
    rate_limit_enabled: bool = False
    rate_limit_rpm: int = 50
    rate_limit_market_intelligence_rpm: int | None = None
    rate_limit_market_chatter_rpm: int | None = None
    trusted_proxies: list[str] = []

    def usage_limit_for(self, scope: str) -> int:
        """Requests per minute allowed for `scope`."""
        override = getattr(self, f"rate_limit_{scope}_rpm", None)
        return override if override is not None else self.rate_limit_rpm

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    create_app() falls back to this when no Settings are passed. Handlers
    read the app's own instance through api.deps.get_app_settings, so tests
    build an app with `create_app(Settings(...))` instead of patching.
    """
    return Settings()

