from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from evops.core.security import CurrentUser, RequestCtx, enforce_rate_limit
from evops.db.session import get_db
from evops.domain.enums import ApiKeyEnvironment, RateLimitType
from evops.services import api_key_service

router = APIRouter(
    prefix="/api-keys",
    tags=["api-keys"],
    dependencies=[Depends(enforce_rate_limit(RateLimitType.api))],
)

DB = Annotated[Session, Depends(get_db)]

SHOW_ONCE_MESSAGE = "Save this key securely. You will not be able to see it again."


class ApiKeyCreate(BaseModel):
    name: str
    permissions: list[str]
    description: str | None = None
    environment: ApiKeyEnvironment = ApiKeyEnvironment.live
    expires_at: datetime | None = None
    rate_limit: int | None = None


def api_key_to_dict(k):
    return {
        "id": str(k.id),
        "user_id": str(k.user_id),
        "name": k.name,
        "description": k.description,
        "key_prefix": k.key_prefix,
        "permissions": k.permissions,
        "environment": k.environment,
        "rate_limit": k.rate_limit or api_key_service.DEFAULT_RATE_LIMIT,
        "status": k.status,
        "expires_at": k.expires_at.isoformat() if k.expires_at else None,
        "last_used_at": k.last_used_at.isoformat() if k.last_used_at else None,
        "total_requests": k.total_requests,
        "revoked_at": k.revoked_at.isoformat() if k.revoked_at else None,
        "created_at": k.created_at.isoformat() if k.created_at else None,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create(body: ApiKeyCreate, user: CurrentUser, ctx: RequestCtx, db: DB):
    """Issue a key. The plain ``key`` is only ever returned here."""
    key, raw = api_key_service.create_key(db, user, context=ctx, **body.model_dump())
    return {**api_key_to_dict(key), "key": raw, "message": SHOW_ONCE_MESSAGE}


@router.get("")
def list_mine(user: CurrentUser, db: DB):
    return [api_key_to_dict(k) for k in api_key_service.list_keys(db, user)]


@router.get("/{key_id}")
def get_by_id(key_id: uuid.UUID, user: CurrentUser, db: DB):
    return api_key_to_dict(api_key_service.get_key(db, user, key_id))


@router.post("/{key_id}/revoke")
def revoke(key_id: uuid.UUID, user: CurrentUser, ctx: RequestCtx, db: DB):
    return api_key_to_dict(api_key_service.revoke_key(db, user, key_id, context=ctx))
