"""
citizen_registry.services.citizens

Citizen registry service (transaction owner for citizen writes).

Responsibilities:
- Register, read, search and update citizens.
- Route every status change through the status audit trail, atomically.
- Expose the citizen lifecycle (trash/restore/purge) with activity logging.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.base import utcnow
from citizen_registry.db.models import Citizen, CitizenStatus, Gender, StatusChangeLog
from citizen_registry.db.repositories.citizens import CitizenRepo
from citizen_registry.errors import AuditWriteError, ConflictError, NotFoundError, RegistryError
from citizen_registry.observability.logging import get_logger
from citizen_registry.services.activity import NO_REQUEST_META, ActivityService, RequestMeta
from citizen_registry.services.lifecycle import (
    DEFAULT_MAX_PAGE_SIZE,
    MANAGED_ENTITIES,
    EntityType,
    LifecycleManager,
    Page,
)
from citizen_registry.services.national_ids import generate_national_id
from citizen_registry.services.status_audit import StatusAuditTrail
from citizen_registry.services.validation import (
    optional_text,
    parse_choice,
    require_text,
    validate_birth_date,
)

log = get_logger(__name__)

ENTITY = "citizen"
DEFAULT_NATIONALITY = "Somali"

_NAME_LIMIT = 100
_PLACE_LIMIT = 200


@dataclass(frozen=True, slots=True)
class CitizenDraft:
    first_name: str
    last_name: str
    gender: str
    date_of_birth: date
    place_of_birth: str
    middle_name: str | None = None
    nationality: str | None = None


class CitizenService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._citizens = CitizenRepo(session)
        self._audit = StatusAuditTrail(session)
        self._activities = ActivityService(session)
        self._lifecycle: LifecycleManager[Citizen] = LifecycleManager(
            session=session,
            entity=MANAGED_ENTITIES[EntityType.citizen],
            max_page_size=max_page_size,
            clock=clock,
        )

    async def register(
        self,
        draft: CitizenDraft,
        *,
        actor_id: uuid.UUID,
        meta: RequestMeta = NO_REQUEST_META,
    ) -> Citizen:
        citizen = Citizen(
            national_id=await generate_national_id(self._citizens),
            first_name=require_text(draft.first_name, "firstName", max_length=_NAME_LIMIT),
            middle_name=optional_text(draft.middle_name, "middleName", max_length=_NAME_LIMIT),
            last_name=require_text(draft.last_name, "lastName", max_length=_NAME_LIMIT),
            gender=parse_choice(Gender, draft.gender, "gender"),
            date_of_birth=validate_birth_date(draft.date_of_birth),
            place_of_birth=require_text(draft.place_of_birth, "placeOfBirth", max_length=_PLACE_LIMIT),
            nationality=optional_text(draft.nationality, "nationality", max_length=_NAME_LIMIT)
            or DEFAULT_NATIONALITY,
            status=CitizenStatus.active,
            deleted_at=None,
        )
        await self._citizens.add(citizen)
        await self._activities.log_activity(
            user_id=actor_id,
            action="CREATE_CITIZEN",
            entity_type=ENTITY,
            entity_id=citizen.national_id,
            description=f"Created citizen: {citizen.full_name} (ID: {citizen.national_id})",
            meta=meta,
        )
        await self._session.commit()
        log.info("citizen.registered", national_id=citizen.national_id, actor_id=str(actor_id))
        return citizen

    async def get(self, national_id: str) -> Citizen:
        citizen = await self._citizens.get_active(national_id)
        if citizen is None:
            raise NotFoundError("Citizen not found")
        return citizen

    async def search(self, query: str, *, limit: int = 50) -> list[Citizen]:
        return await self._citizens.search(query.strip(), limit=limit)

    async def list_active(self, *, page: int, page_size: int) -> Page[Citizen]:
        return await self._lifecycle.list_active(page=page, page_size=page_size)

    async def list_trash(self, *, page: int, page_size: int) -> Page[Citizen]:
        return await self._lifecycle.list_trash(page=page, page_size=page_size)

    async def update(
        self,
        national_id: str,
        changes: dict[str, Any],
        *,
        actor_id: uuid.UUID,
        meta: RequestMeta = NO_REQUEST_META,
    ) -> Citizen:
        """
        Partial update. Keys are snake_case field names; a `status` key goes through
        the audit trail in the same transaction as the other fields.
        """

        citizen = await self.get(national_id)
        new_status = changes.get("status")
        target = parse_choice(CitizenStatus, new_status, "status") if new_status else None

        if changes.get("first_name"):
            citizen.first_name = require_text(changes["first_name"], "firstName", max_length=_NAME_LIMIT)
        if "middle_name" in changes:
            citizen.middle_name = optional_text(
                changes["middle_name"], "middleName", max_length=_NAME_LIMIT
            )
        if changes.get("last_name"):
            citizen.last_name = require_text(changes["last_name"], "lastName", max_length=_NAME_LIMIT)
        if changes.get("gender"):
            citizen.gender = parse_choice(Gender, changes["gender"], "gender")
        if changes.get("date_of_birth"):
            citizen.date_of_birth = validate_birth_date(changes["date_of_birth"])
        if changes.get("place_of_birth"):
            citizen.place_of_birth = require_text(
                changes["place_of_birth"], "placeOfBirth", max_length=_PLACE_LIMIT
            )
        if changes.get("nationality"):
            citizen.nationality = require_text(
                changes["nationality"], "nationality", max_length=_NAME_LIMIT
            )

        await self._commit_with_status(
            citizen,
            target=target,
            actor_id=actor_id,
            action="UPDATE_CITIZEN",
            description=f"Updated citizen: {citizen.full_name}",
            meta=meta,
        )
        return citizen

    async def change_status(
        self,
        national_id: str,
        new_status: str | CitizenStatus,
        *,
        actor_id: uuid.UUID,
        meta: RequestMeta = NO_REQUEST_META,
    ) -> Citizen:
        target = parse_choice(CitizenStatus, new_status, "status")
        citizen = await self.get(national_id)
        await self._commit_with_status(
            citizen,
            target=target,
            actor_id=actor_id,
            action="UPDATE_CITIZEN_STATUS",
            description=f"Updated citizen status to {target.value}",
            meta=meta,
        )
        return citizen

    async def status_history(self, national_id: str) -> list[StatusChangeLog]:
        if not await self._citizens.national_id_exists(national_id):
            raise NotFoundError("Citizen not found")
        return await self._audit.history(national_id)

    async def soft_delete(
        self, national_id: str, *, actor_id: uuid.UUID, meta: RequestMeta = NO_REQUEST_META
    ) -> None:
        await self._lifecycle.soft_delete(national_id)
        await self._log(actor_id, "DELETE_CITIZEN", national_id, f"Deleted citizen: {national_id}", meta)
        await self._session.commit()

    async def restore(
        self, national_id: str, *, actor_id: uuid.UUID, meta: RequestMeta = NO_REQUEST_META
    ) -> Citizen:
        await self._lifecycle.restore(national_id)
        await self._log(actor_id, "RESTORE_CITIZEN", national_id, f"Restored citizen: {national_id}", meta)
        await self._session.commit()
        return await self.get(national_id)

    async def purge(
        self, national_id: str, *, actor_id: uuid.UUID, meta: RequestMeta = NO_REQUEST_META
    ) -> None:
        await self._lifecycle.purge(national_id)
        await self._log(
            actor_id,
            "PERMANENT_DELETE_CITIZEN",
            national_id,
            f"Permanently deleted citizen: {national_id}",
            meta,
        )
        await self._session.commit()

    async def _commit_with_status(
        self,
        citizen: Citizen,
        *,
        target: CitizenStatus | None,
        actor_id: uuid.UUID,
        action: str,
        description: str,
        meta: RequestMeta,
    ) -> None:
        # Status row, log row and activity row commit together or not at all.
        national_id = citizen.national_id
        try:
            if target is not None and target != citizen.status:
                await self._transition(citizen, target=target, actor_id=actor_id)
            await self._log(actor_id, action, national_id, description, meta)
            await self._session.commit()
        except RegistryError:
            await self._session.rollback()
            raise
        except SQLAlchemyError as e:
            await self._session.rollback()
            log.error("citizen.status_write_failed", national_id=national_id, error=str(e))
            raise AuditWriteError("Citizen change could not be recorded; nothing was saved") from e

    async def _transition(
        self, citizen: Citizen, *, target: CitizenStatus, actor_id: uuid.UUID
    ) -> None:
        observed = citizen.status
        applied = await self._citizens.set_status_if(
            national_id=citizen.national_id, expected=observed, new_status=target
        )
        if not applied:
            raise ConflictError("Citizen status was changed concurrently; reload and retry")
        citizen.status = target
        await self._audit.record_transition(
            subject_key=citizen.national_id,
            old_status=observed,
            new_status=target,
            actor_id=actor_id,
        )

    async def _log(
        self,
        actor_id: uuid.UUID,
        action: str,
        national_id: str,
        description: str,
        meta: RequestMeta,
    ) -> None:
        await self._activities.log_activity(
            user_id=actor_id,
            action=action,
            entity_type=ENTITY,
            entity_id=national_id,
            description=description,
            meta=meta,
        )
