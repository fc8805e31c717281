"""
citizen_registry.access

Access-control core.

Responsibilities:
- Resolve a principal's permission codes from its role.
- Decide allow/deny for a principal against required permission codes.
- Compose the navigable menu forest for a set of granted codes.
- Cache role/menu reference data process-wide with explicit invalidation.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing in this package knows about HTTP; `auth.deps` adapts it to FastAPI.
