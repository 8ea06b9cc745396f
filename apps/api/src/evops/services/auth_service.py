from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from evops.core.client_context import RequestContext
from evops.core.errors import (
    AccountLockedError,
    ConflictError,
    ErrorCode,
    ForbiddenError,
    UnauthorizedError,
    ValidationError,
)
from evops.core.security import hash_password, verify_password
from evops.db.models.user import User
from evops.domain.enums import AuditAction, AuditResource, AuditStatus, Role, UserStatus
from evops.domain.validation import ensure_strong_password, is_valid_email
from evops.services import audit_service, lockout_service

logger = logging.getLogger(__name__)

BAD_CREDENTIALS = "Incorrect email or password"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == _normalize_email(email)).first()


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Return the user if email+password are valid, otherwise None."""
    user = get_user_by_email(db, email)
    if user is None:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        return None
    return user


def login(
    db: Session,
    *,
    email: str,
    password: str,
    context: RequestContext | None = None,
) -> User:
    """Check lockout, verify credentials and audit the outcome.

    Every outcome is committed, including failures, so failed attempts count
    towards the lockout even though the request itself is rejected.
    """
    identifier = _normalize_email(email)

    lockout = lockout_service.check_lockout_status(db, identifier)
    if lockout.is_locked:
        wait = lockout_service.format_lockout_duration(lockout.lockout_duration or 0)
        audit_service.log_action(
            db,
            action=AuditAction.account_locked,
            resource=AuditResource.auth,
            status=AuditStatus.blocked,
            user_email=identifier,
            context=context,
            metadata={"locked_until": lockout.locked_until},
        )
        db.commit()
        raise AccountLockedError(
            f"Too many failed attempts. Try again in {wait}.",
            locked_until=lockout.locked_until,
        )

    user = authenticate_user(db, identifier, password)
    if user is None:
        attempt = lockout_service.record_failed_attempt(db, identifier)
        audit_service.log_action(
            db,
            action=AuditAction.login_failed,
            resource=AuditResource.auth,
            status=AuditStatus.failure,
            user_email=identifier,
            context=context,
            metadata={"remaining_attempts": attempt.remaining_attempts},
            error_message=BAD_CREDENTIALS,
        )
        db.commit()
        logger.info("login failed: email=%s remaining=%d", identifier, attempt.remaining_attempts)
        raise UnauthorizedError(BAD_CREDENTIALS)

    if user.status == UserStatus.suspended:
        audit_service.log_action(
            db,
            action=AuditAction.login_failed,
            resource=AuditResource.auth,
            status=AuditStatus.blocked,
            user_id=user.id,
            user_email=user.email,
            context=context,
            error_message="Account suspended",
        )
        db.commit()
        raise ForbiddenError("Account suspended", code=ErrorCode.ACCOUNT_SUSPENDED)

    lockout_service.clear_failed_attempts(db, identifier)
    audit_service.log_action(
        db,
        action=AuditAction.login,
        resource=AuditResource.auth,
        user_id=user.id,
        user_email=user.email,
        context=context,
    )
    db.commit()
    return user


def signup(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str,
    context: RequestContext | None = None,
) -> User:
    email = _normalize_email(email)
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    ensure_strong_password(password)
    full_name = full_name.strip()
    if not full_name:
        raise ValidationError("Full name cannot be empty", code=ErrorCode.MISSING_REQUIRED_FIELD)
    if get_user_by_email(db, email) is not None:
        raise ConflictError("An account with this email already exists", ErrorCode.ALREADY_EXISTS)

    user = User(
        email=email,
        full_name=full_name,
        hashed_password=hash_password(password),
        role=Role.organizer,
    )
    db.add(user)
    db.flush()

    audit_service.log_action(
        db,
        action=AuditAction.signup,
        resource=AuditResource.user,
        resource_id=str(user.id),
        user_id=user.id,
        user_email=user.email,
        context=context,
    )
    db.commit()
    db.refresh(user)
    return user
