"""
citizen_registry.access.guard

Reusable authorization check.

Responsibilities:
- Deny inactive or trashed principals before looking at permissions.
- Treat an empty requirement as "authenticated but otherwise open".
- Grant when the principal holds any one of the required codes.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable

from citizen_registry.access.permissions import PermissionResolver
from citizen_registry.auth.models import Principal
from citizen_registry.errors import ForbiddenError
from citizen_registry.observability.logging import get_logger

log = get_logger(__name__)


class AccessDecision(enum.StrEnum):
    allow = "ALLOW"
    deny = "DENY"


class AccessGuard:
    def __init__(self, *, resolver: PermissionResolver) -> None:
        self._resolver = resolver

    async def authorize(
        self,
        principal: Principal | None,
        required_codes: str | Iterable[str] = (),
    ) -> AccessDecision:
        required = _as_code_set(required_codes)
        if principal is None:
            log.info("access.denied", reason="no_principal", required=sorted(required))
            return AccessDecision.deny

        # Checked before resolution so an inactive account never costs a role lookup.
        if not principal.is_active:
            log.info(
                "access.denied",
                reason="inactive_principal",
                principal_id=str(principal.user_id),
                required=sorted(required),
            )
            return AccessDecision.deny

        if not required:
            return AccessDecision.allow

        granted = await self._resolver.resolve_permissions(principal.user_id)
        if granted & required:
            return AccessDecision.allow

        log.info(
            "access.denied",
            reason="missing_permission",
            principal_id=str(principal.user_id),
            required=sorted(required),
        )
        return AccessDecision.deny

    async def ensure_authorized(
        self,
        principal: Principal | None,
        required_codes: str | Iterable[str] = (),
    ) -> None:
        if await self.authorize(principal, required_codes) is AccessDecision.deny:
            raise ForbiddenError("Insufficient permissions")


def _as_code_set(codes: str | Iterable[str]) -> frozenset[str]:
    if isinstance(codes, str):
        return frozenset({codes})
    return frozenset(codes)


# --- Module Notes -----------------------------------------------------------
# ADMIN has no bypass here; it passes because seeding attaches every permission to it.
