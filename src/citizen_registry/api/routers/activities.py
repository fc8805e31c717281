from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.api.deps import db_session
from citizen_registry.api.schemas import ActivityResponse
from citizen_registry.auth.deps import require_permissions
from citizen_registry.auth.models import Principal
from citizen_registry.services.activity import ActivityService

router = APIRouter(prefix="/v1/activities", tags=["activities"])

_view_activities = require_permissions("VIEW_ACTIVITIES")


@router.get("/recent", response_model=list[ActivityResponse])
async def recent_activities(
    limit: int = Query(default=20, ge=1, le=100),
    _: Principal = Depends(_view_activities),
    session: AsyncSession = Depends(db_session),
) -> list[ActivityResponse]:
    rows = await ActivityService(session).recent(limit=limit)
    return [ActivityResponse.from_activity(a) for a in rows]


@router.get("/users/{user_id}", response_model=list[ActivityResponse])
async def user_activities(
    user_id: uuid.UUID,
    limit: int = Query(default=50, ge=1, le=100),
    _: Principal = Depends(_view_activities),
    session: AsyncSession = Depends(db_session),
) -> list[ActivityResponse]:
    rows = await ActivityService(session).for_user(user_id, limit=limit)
    return [ActivityResponse.from_activity(a) for a in rows]
