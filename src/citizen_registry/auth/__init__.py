"""
citizen_registry.auth

Authentication/authorization adapters.

Responsibilities:
- Bearer token verification (the credential verifier).
- FastAPI dependencies turning a token into a `Principal` and enforcing permissions.
"""

# Package marker.
