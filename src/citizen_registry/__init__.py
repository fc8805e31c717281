"""
citizen_registry

Top-level package for the citizen registry administration service.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Entrypoint: `citizen-registry-api` (see `citizen_registry.api.__main__`).
