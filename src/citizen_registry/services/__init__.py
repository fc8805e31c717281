"""
citizen_registry.services

Service-layer package.

Responsibilities:
- Own transaction boundaries and persistence decisions.
- Apply lifecycle, audit and validation rules on top of thin repositories.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services raise `citizen_registry.errors` types; the API layer maps them to HTTP.
