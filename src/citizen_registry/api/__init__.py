"""
citizen_registry.api

HTTP API package for the citizen registry service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and request/response models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers validate input, check permissions and delegate; rules live in services.
