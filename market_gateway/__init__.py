# =============================================================================
# Market Intelligence Gateway
# =============================================================================
# Backend-for-frontend that proxies third-party market analysis services
# behind one API. Expensive agentic analyses are normalized into a stable
# record shape and cached in-process with a randomized TTL.
#
# Package structure:
#   market_gateway/
#   ├── api/          → FastAPI route handlers and dependencies
#   ├── models/       → Pydantic V2 schemas (requests, responses, the
#   │                    normalized intelligence record)
#   ├── services/     → Business logic (cache, normalizer, upstream
#   │                    clients, usage limiter, symbol resolution)
#   ├── config.py     → pydantic-settings configuration
#   └── main.py       → Application factory and lifespan
# =============================================================================
