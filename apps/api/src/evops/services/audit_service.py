from __future__ import annotations

import logging
import uuid
from collections import Counter
from enum import StrEnum
from typing import Any

from sqlalchemy.orm import Session

from evops.core import clock
from evops.core.client_context import RequestContext
from evops.core.config import settings
from evops.core.errors import ValidationError
from evops.db.models.audit_log import AuditLog
from evops.domain.enums import AuditAction, AuditResource, AuditStatus
from evops.domain.roles import Caller, require_admin

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
DEFAULT_ADMIN_SECURITY_LIMIT = 50
DEFAULT_HOURS_BACK = 24
SECURITY_STATUSES = (AuditStatus.failure, AuditStatus.blocked)


def _closed(enum_cls: type[StrEnum], value: str, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        raise ValidationError(f"Unknown audit {field}: {value!r}") from None


def log_action(
    db: Session,
    *,
    action: AuditAction | str,
    resource: AuditResource | str,
    status: AuditStatus | str = AuditStatus.success,
    actor: Caller | None = None,
    user_id: uuid.UUID | None = None,
    user_email: str | None = None,
    resource_id: str | None = None,
    context: RequestContext | None = None,
    metadata: dict[str, Any] | None = None,
    error_message: str | None = None,
) -> AuditLog:
    """Append an audit entry to the session and flush it.

    The entry commits with whatever the caller commits next, so logging before
    the business commit keeps the two together. Any error here propagates.
    """
    if actor is not None:
        user_id = user_id or actor.id
        user_email = user_email or actor.email

    entry = AuditLog(
        user_id=user_id,
        user_email=user_email,
        action=_closed(AuditAction, action, "action"),
        resource=_closed(AuditResource, resource, "resource"),
        resource_id=resource_id,
        ip_address=context.ip_address if context else None,
        user_agent=context.user_agent if context else None,
        endpoint=context.endpoint if context else None,
        details=metadata,
        status=_closed(AuditStatus, status, "status"),
        error_message=error_message,
        created_at=clock.now_ms(),
    )
    db.add(entry)
    db.flush()
    return entry


# -- Internal queries ---------------------------------------------------------


def get_by_user(db: Session, user_id: uuid.UUID, limit: int = DEFAULT_LIMIT) -> list[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.user_id == user_id)
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
        .all()
    )


def get_by_action(
    db: Session,
    action: str,
    limit: int = DEFAULT_LIMIT,
    start_date: int | None = None,
) -> list[AuditLog]:
    q = db.query(AuditLog).filter(AuditLog.action == action)
    if start_date is not None:
        q = q.filter(AuditLog.created_at >= start_date)
    return q.order_by(AuditLog.created_at.desc()).limit(limit).all()


def get_by_resource(
    db: Session,
    resource: str,
    resource_id: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[AuditLog]:
    q = db.query(AuditLog).filter(AuditLog.resource == resource)
    if resource_id is not None:
        q = q.filter(AuditLog.resource_id == resource_id)
    return q.order_by(AuditLog.created_at.desc()).limit(limit).all()


def get_security_events(
    db: Session,
    limit: int = DEFAULT_LIMIT,
    hours_back: float = DEFAULT_HOURS_BACK,
) -> list[AuditLog]:
    """Failures and blocks inside the trailing ``hours_back`` window."""
    start = clock.now_ms() - int(hours_back * clock.HOUR_MS)
    return (
        db.query(AuditLog)
        .filter(
            AuditLog.created_at >= start,
            AuditLog.status.in_([s.value for s in SECURITY_STATUSES]),
        )
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
        .all()
    )


# -- Admin queries ------------------------------------------------------------


def list_logs(
    db: Session,
    caller: Caller | None,
    *,
    limit: int = DEFAULT_LIMIT,
    action: str | None = None,
    status: str | None = None,
    start_date: int | None = None,
    end_date: int | None = None,
) -> list[AuditLog]:
    """Most recent entries matching the filters, at most ``limit`` of them.

    Only the ``2 * limit`` newest rows are read before filtering, so a narrow
    filter can return fewer than ``limit`` rows even when older matches exist.
    """
    require_admin(caller)

    logs = db.query(AuditLog).order_by(AuditLog.created_at.desc()).limit(limit * 2).all()

    if action:
        logs = [log for log in logs if log.action == action]
    if status:
        logs = [log for log in logs if log.status == status]
    if start_date is not None:
        logs = [log for log in logs if log.created_at >= start_date]
    if end_date is not None:
        logs = [log for log in logs if log.created_at <= end_date]

    return logs[:limit]


def get_stats(
    db: Session, caller: Caller | None, *, hours_back: float = DEFAULT_HOURS_BACK
) -> dict[str, Any]:
    require_admin(caller)

    start = clock.now_ms() - int(hours_back * clock.HOUR_MS)
    recent = db.query(AuditLog).filter(AuditLog.created_at >= start).all()

    by_status = Counter(log.status for log in recent)
    return {
        "total": len(recent),
        "success": by_status[AuditStatus.success],
        "failure": by_status[AuditStatus.failure],
        "blocked": by_status[AuditStatus.blocked],
        "by_action": dict(Counter(log.action for log in recent)),
        "by_resource": dict(Counter(log.resource for log in recent)),
    }


def get_security_events_admin(
    db: Session,
    caller: Caller | None,
    *,
    limit: int = DEFAULT_ADMIN_SECURITY_LIMIT,
    hours_back: float = DEFAULT_HOURS_BACK,
) -> list[AuditLog]:
    require_admin(caller)
    return get_security_events(db, limit=limit, hours_back=hours_back)


# -- Retention ----------------------------------------------------------------


def cleanup_old_logs(
    db: Session,
    days_to_keep: int | None = None,
    batch_size: int | None = None,
    *,
    actor: Caller | None = None,
    context: RequestContext | None = None,
) -> dict[str, int]:
    """Delete one batch of entries older than the retention window.

    Re-run until ``deleted`` is 0 to drain a large backlog. When an admin
    ``actor`` triggers the purge it is recorded in the same commit.
    """
    if actor is not None:
        require_admin(actor)
    days = settings.AUDIT_RETENTION_DAYS if days_to_keep is None else days_to_keep
    if days < 1:
        raise ValidationError("days_to_keep must be at least 1")
    batch = settings.AUDIT_CLEANUP_BATCH_SIZE if batch_size is None else batch_size
    cutoff = clock.now_ms() - days * clock.DAY_MS

    ids = [
        row[0]
        for row in db.query(AuditLog.id)
        .filter(AuditLog.created_at < cutoff)
        .order_by(AuditLog.created_at)
        .limit(batch)
        .all()
    ]
    if ids:
        db.query(AuditLog).filter(AuditLog.id.in_(ids)).delete(synchronize_session=False)
    if actor is not None:
        log_action(
            db,
            action=AuditAction.admin_action,
            resource=AuditResource.settings,
            actor=actor,
            context=context,
            metadata={"operation": "audit_cleanup", "days_to_keep": days, "deleted": len(ids)},
        )
    db.commit()

    logger.info("cleanup_old_logs: deleted %d entries older than %d days", len(ids), days)
    return {"deleted": len(ids)}
