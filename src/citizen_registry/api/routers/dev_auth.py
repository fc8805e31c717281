from __future__ import annotations

import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from starlette.status import HTTP_404_NOT_FOUND

from citizen_registry.api.deps import settings_dep
from citizen_registry.api.schemas import ApiModel
from citizen_registry.auth.jwt import JwtConfig, issue_token
from citizen_registry.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(ApiModel):
    user_id: uuid.UUID
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.user_id,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
