# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter for a specific feature:
#   - intelligence.py: Cached market intelligence + cache operations
#   - chatter.py: Market chatter pass-through proxy
#   - deps.py: Dependencies resolving shared components from app.state
# =============================================================================
