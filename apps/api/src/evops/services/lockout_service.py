"""Progressive account lockout after repeated failed logins."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from sqlalchemy import or_
from sqlalchemy.orm import Session

from evops.core import clock
from evops.db.models.security import FailedLoginAttempt
from evops.db.session import add_or_get

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
ATTEMPT_WINDOW_MS = 15 * clock.MINUTE_MS
# 5, 10, 15 and 20+ failures inside the window
LOCKOUT_DURATIONS_MS = (
    1 * clock.MINUTE_MS,
    5 * clock.MINUTE_MS,
    15 * clock.MINUTE_MS,
    60 * clock.MINUTE_MS,
)
MAX_LOCKOUT_MS = 60 * clock.MINUTE_MS
RECORD_TTL_MS = clock.DAY_MS


@dataclass(frozen=True)
class LockoutStatus:
    is_locked: bool
    remaining_attempts: int
    locked_until: int | None = None
    lockout_duration: int | None = None


def lockout_duration_ms(failure_count: int) -> int:
    index = failure_count // MAX_ATTEMPTS - 1
    if index < 0:
        return MAX_LOCKOUT_MS
    return LOCKOUT_DURATIONS_MS[min(index, len(LOCKOUT_DURATIONS_MS) - 1)]


def format_lockout_duration(ms: int) -> str:
    minutes = math.ceil(ms / clock.MINUTE_MS)
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'}"
    hours = math.ceil(minutes / 60)
    return f"{hours} hour{'' if hours == 1 else 's'}"


def _get_record(
    db: Session, identifier: str, *, for_update: bool = False
) -> FailedLoginAttempt | None:
    q = db.query(FailedLoginAttempt).filter(FailedLoginAttempt.identifier == identifier.lower())
    if for_update:
        q = q.with_for_update()
    return q.first()


def check_lockout_status(db: Session, identifier: str) -> LockoutStatus:
    now = clock.now_ms()
    record = _get_record(db, identifier)
    if record is None:
        return LockoutStatus(is_locked=False, remaining_attempts=MAX_ATTEMPTS)

    if record.locked_until and record.locked_until > now:
        return LockoutStatus(
            is_locked=True,
            remaining_attempts=0,
            locked_until=record.locked_until,
            lockout_duration=record.locked_until - now,
        )

    window_start = now - ATTEMPT_WINDOW_MS
    recent = [t for t in record.attempts or [] if t > window_start]
    return LockoutStatus(
        is_locked=False, remaining_attempts=max(0, MAX_ATTEMPTS - len(recent))
    )


def record_failed_attempt(db: Session, identifier: str) -> LockoutStatus:
    """Add a failure for ``identifier`` and lock it once the window is full.

    The row stays locked until the caller commits, so concurrent failures for
    one identifier are applied one after another. Flushes but does not commit.
    """
    now = clock.now_ms()
    window_start = now - ATTEMPT_WINDOW_MS
    identifier = identifier.lower()

    record = _get_record(db, identifier, for_update=True)
    if record is None:
        record = add_or_get(
            db,
            FailedLoginAttempt(identifier=identifier, attempts=[], created_at=now),
            lambda: _get_record(db, identifier, for_update=True),
        )
    attempts = [t for t in record.attempts or [] if t > window_start]
    attempts.append(now)

    locked_until = None
    if len(attempts) >= MAX_ATTEMPTS:
        locked_until = now + lockout_duration_ms(len(attempts))

    record.attempts = attempts
    record.locked_until = locked_until
    db.flush()

    if locked_until:
        logger.warning("account locked: identifier=%s failures=%d", identifier, len(attempts))

    return LockoutStatus(
        is_locked=locked_until is not None,
        remaining_attempts=max(0, MAX_ATTEMPTS - len(attempts)),
        locked_until=locked_until,
        lockout_duration=locked_until - now if locked_until else None,
    )


def clear_failed_attempts(db: Session, identifier: str) -> None:
    record = _get_record(db, identifier)
    if record is not None:
        db.delete(record)
        db.flush()


def cleanup_old_records(db: Session) -> dict[str, int]:
    now = clock.now_ms()
    deleted = (
        db.query(FailedLoginAttempt)
        .filter(
            FailedLoginAttempt.created_at < now - RECORD_TTL_MS,
            or_(
                FailedLoginAttempt.locked_until.is_(None),
                FailedLoginAttempt.locked_until < now,
            ),
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("cleanup lockout records: deleted %d", deleted)
    return {"deleted": deleted}
