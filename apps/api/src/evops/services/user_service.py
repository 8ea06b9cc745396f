"""Admin-side user management: role changes and suspensions."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from evops.core.client_context import RequestContext
from evops.core.clock import utcnow
from evops.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from evops.db.models.user import User
from evops.domain.enums import AuditAction, AuditResource, Role, UserStatus
from evops.domain.roles import Caller, has_role_privilege, is_admin_role, require_admin
from evops.services import audit_service

logger = logging.getLogger(__name__)

REASON_MAX = 1000


def get_user(db: Session, user_id: uuid.UUID) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def list_users(
    db: Session,
    caller: Caller | None,
    *,
    role: str | None = None,
    status: str | None = None,
    limit: int = 100,
) -> list[User]:
    require_admin(caller)
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    if status:
        q = q.filter(User.status == status)
    return q.order_by(User.created_at.desc()).limit(limit).all()


def _get_target(db: Session, user_id: uuid.UUID) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


def change_role(
    db: Session,
    caller: Caller | None,
    *,
    user_id: uuid.UUID,
    new_role: str,
    context: RequestContext | None = None,
) -> User:
    caller = require_admin(caller)
    try:
        new_role = Role(new_role).value
    except ValueError:
        raise ValidationError(f"Unknown role: {new_role!r}") from None

    if user_id == caller.id:
        raise ForbiddenError("You cannot change your own role")

    user = _get_target(db, user_id)
    previous = user.role
    if (is_admin_role(new_role) or is_admin_role(previous)) and not has_role_privilege(
        caller.role, Role.superadmin
    ):
        raise ForbiddenError("Only a superadmin can grant or revoke admin roles")

    user.role = new_role

    audit_service.log_action(
        db,
        action=AuditAction.role_changed,
        resource=AuditResource.user,
        resource_id=str(user.id),
        actor=caller,
        context=context,
        metadata={"previous_role": previous, "new_role": new_role},
    )
    db.commit()
    db.refresh(user)
    logger.info("role changed: user=%s %s -> %s by=%s", user.id, previous, new_role, caller.id)
    return user


def suspend_user(
    db: Session,
    caller: Caller | None,
    *,
    user_id: uuid.UUID,
    reason: str,
    context: RequestContext | None = None,
) -> User:
    caller = require_admin(caller)
    reason = reason.strip()
    if not reason:
        raise ValidationError("A suspension reason is required")
    if len(reason) > REASON_MAX:
        raise ValidationError(f"Reason must be {REASON_MAX} characters or less")
    if user_id == caller.id:
        raise ForbiddenError("You cannot suspend yourself")

    user = _get_target(db, user_id)
    if is_admin_role(user.role) and not caller.is_superadmin:
        raise ForbiddenError("Only a superadmin can suspend an admin")
    if user.status == UserStatus.suspended:
        raise ConflictError("User is already suspended")

    user.status = UserStatus.suspended
    user.suspended_at = utcnow()
    user.suspended_reason = reason

    audit_service.log_action(
        db,
        action=AuditAction.user_suspended,
        resource=AuditResource.user,
        resource_id=str(user.id),
        actor=caller,
        context=context,
        metadata={"reason": reason},
    )
    db.commit()
    db.refresh(user)
    return user


def unsuspend_user(
    db: Session,
    caller: Caller | None,
    *,
    user_id: uuid.UUID,
    context: RequestContext | None = None,
) -> User:
    caller = require_admin(caller)
    user = _get_target(db, user_id)
    if user.status != UserStatus.suspended:
        raise ConflictError("User is not suspended")

    user.status = UserStatus.active
    user.suspended_at = None
    user.suspended_reason = None

    audit_service.log_action(
        db,
        action=AuditAction.user_unsuspended,
        resource=AuditResource.user,
        resource_id=str(user.id),
        actor=caller,
        context=context,
    )
    db.commit()
    db.refresh(user)
    return user
