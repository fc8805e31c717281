"""
citizen_registry.errors

Domain exception taxonomy.

Responsibilities:
- Give services a small, closed set of failure types.
- Carry the HTTP status each failure maps to, so the API layer needs a single handler.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base exception for the registry service."""

    status_code: int = 500

    def __init__(self, message: str = "An error occurred") -> None:
        self.message = message
        super().__init__(self.message)


class NotFoundError(RegistryError):
    """Entity absent, or not in the lifecycle state the operation requires."""

    status_code = 404


class ForbiddenError(RegistryError):
    """Authenticated principal lacks a required permission or is inactive."""

    status_code = 403


class ValidationError(RegistryError):
    """Malformed input (unknown status value, bad paging, invalid field)."""

    status_code = 400


class ConflictError(RegistryError):
    """A transition precondition no longer holds (e.g. a concurrent write won)."""

    status_code = 409


class AuditWriteError(ConflictError):
    """The audit row for a status change could not be written; the change was rolled back."""


# --- Module Notes -----------------------------------------------------------
# `api.app.create_app` registers a single handler for RegistryError and its subclasses.
