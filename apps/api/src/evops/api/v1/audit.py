from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from evops.core.security import CurrentUser, enforce_rate_limit
from evops.db.session import get_db
from evops.domain.enums import AuditStatus, RateLimitType
from evops.services import audit_service

router = APIRouter(
    prefix="/audit",
    tags=["audit"],
    dependencies=[Depends(enforce_rate_limit(RateLimitType.admin))],
)

DB = Annotated[Session, Depends(get_db)]


def log_to_dict(log):
    return {
        "id": str(log.id),
        "user_id": str(log.user_id) if log.user_id else None,
        "user_email": log.user_email,
        "action": log.action,
        "resource": log.resource,
        "resource_id": log.resource_id,
        "ip_address": log.ip_address,
        "user_agent": log.user_agent,
        "endpoint": log.endpoint,
        "metadata": log.details,
        "status": log.status,
        "error_message": log.error_message,
        "created_at": log.created_at,
    }


@router.get("/logs")
def list_logs(
    user: CurrentUser,
    db: DB,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    action: str | None = None,
    status: AuditStatus | None = None,
    start_date: int | None = None,
    end_date: int | None = None,
):
    """Recent audit entries, newest first. ``start_date``/``end_date`` are epoch ms."""
    logs = audit_service.list_logs(
        db,
        user,
        limit=limit,
        action=action,
        status=status,
        start_date=start_date,
        end_date=end_date,
    )
    return [log_to_dict(log) for log in logs]


@router.get("/stats")
def stats(user: CurrentUser, db: DB, hours_back: Annotated[float, Query(ge=0)] = 24):
    return audit_service.get_stats(db, user, hours_back=hours_back)


@router.get("/security-events")
def security_events(
    user: CurrentUser,
    db: DB,
    limit: Annotated[int, Query(ge=1, le=1000)] = 50,
    hours_back: Annotated[float, Query(ge=0)] = 24,
):
    logs = audit_service.get_security_events_admin(db, user, limit=limit, hours_back=hours_back)
    return [log_to_dict(log) for log in logs]
