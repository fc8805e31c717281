"""
citizen_registry.services.status_audit

Audit trail for citizen status transitions.

Responsibilities:
- Append exactly one StatusChangeLog row per accepted transition.
- Skip re-applications of the current status.
- Read a citizen's transition history.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.models import CitizenStatus, StatusChangeLog
from citizen_registry.db.repositories.status_changes import StatusChangeRepo
from citizen_registry.observability.logging import get_logger

log = get_logger(__name__)


class StatusAuditTrail:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = StatusChangeRepo(session)

    async def record_transition(
        self,
        *,
        subject_key: str,
        old_status: CitizenStatus,
        new_status: CitizenStatus,
        actor_id: uuid.UUID,
    ) -> StatusChangeLog | None:
        """
        Write the log row inside the caller's transaction. Returns None for a no-op
        transition. Errors propagate so the caller can roll back the status update.
        """

        if old_status == new_status:
            return None
        row = await self._repo.add(
            subject_id=subject_key,
            old_status=old_status,
            new_status=new_status,
            actor_id=actor_id,
        )
        log.info(
            "citizen.status_changed",
            national_id=subject_key,
            old_status=old_status.value,
            new_status=new_status.value,
            actor_id=str(actor_id),
        )
        return row

    async def history(self, subject_key: str) -> list[StatusChangeLog]:
        return await self._repo.list_for_subject(subject_key)
