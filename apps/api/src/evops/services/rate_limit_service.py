"""Fixed-window request limits keyed by client address (or user id) and type."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from evops.core import clock
from evops.db.models.security import RateLimitRecord
from evops.db.session import add_or_get
from evops.domain.enums import RateLimitType
from evops.domain.roles import Caller, require_admin

logger = logging.getLogger(__name__)

RECORD_TTL_MS = clock.HOUR_MS
CLEANUP_BATCH_SIZE = 500


@dataclass(frozen=True)
class RateLimitRule:
    window_ms: int
    max_requests: int


RATE_LIMITS: dict[str, RateLimitRule] = {
    RateLimitType.auth: RateLimitRule(window_ms=15 * clock.MINUTE_MS, max_requests=20),
    RateLimitType.api: RateLimitRule(window_ms=clock.MINUTE_MS, max_requests=60),
    RateLimitType.admin: RateLimitRule(window_ms=clock.MINUTE_MS, max_requests=30),
    RateLimitType.default: RateLimitRule(window_ms=clock.MINUTE_MS, max_requests=100),
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    limit: int
    reset_at: int
    retry_after: int | None = None

    def headers(self) -> dict[str, str]:
        out = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if self.retry_after:
            out["Retry-After"] = str(self.retry_after)
        return out


def rule_for(kind: str) -> RateLimitRule:
    return RATE_LIMITS.get(kind, RATE_LIMITS[RateLimitType.default])


def _get_record(db: Session, identifier: str, kind: str, *, for_update: bool = False):
    q = db.query(RateLimitRecord).filter(
        RateLimitRecord.identifier == identifier, RateLimitRecord.type == kind
    )
    if for_update:
        q = q.with_for_update()
    return q.first()


def _blocked(rule: RateLimitRule, record: RateLimitRecord, now: int) -> RateLimitResult:
    reset_at = record.window_start + rule.window_ms
    return RateLimitResult(
        allowed=False,
        remaining=0,
        limit=rule.max_requests,
        reset_at=reset_at,
        retry_after=max(1, math.ceil((reset_at - now) / 1000)),
    )


def check_rate_limit(db: Session, identifier: str, kind: str) -> RateLimitResult:
    """Read-only view of where ``identifier`` stands."""
    rule = rule_for(kind)
    now = clock.now_ms()
    record = _get_record(db, identifier, kind)

    if record is None or record.window_start < now - rule.window_ms:
        return RateLimitResult(
            allowed=True,
            remaining=rule.max_requests,
            limit=rule.max_requests,
            reset_at=now + rule.window_ms,
        )
    if record.request_count >= rule.max_requests:
        return _blocked(rule, record, now)
    return RateLimitResult(
        allowed=True,
        remaining=rule.max_requests - record.request_count,
        limit=rule.max_requests,
        reset_at=record.window_start + rule.window_ms,
    )


def check_and_increment(
    db: Session, identifier: str, kind: str, *, rule: RateLimitRule | None = None
) -> RateLimitResult:
    """Count one request against the limit; flushes but does not commit.

    ``rule`` overrides the limit configured for ``kind``, e.g. a per-key quota.
    """
    rule = rule or rule_for(kind)
    now = clock.now_ms()
    current_window = (now // rule.window_ms) * rule.window_ms
    record = _get_record(db, identifier, kind, for_update=True)
    if record is None:
        record = add_or_get(
            db,
            RateLimitRecord(
                identifier=identifier,
                type=kind,
                request_count=0,
                window_start=current_window,
                last_request_at=now,
            ),
            lambda: _get_record(db, identifier, kind, for_update=True),
        )

    if record.window_start < now - rule.window_ms:
        record.request_count = 0
        record.window_start = current_window

    if record.request_count >= rule.max_requests:
        return _blocked(rule, record, now)

    record.request_count += 1
    record.last_request_at = now
    db.flush()
    return RateLimitResult(
        allowed=True,
        remaining=rule.max_requests - record.request_count,
        limit=rule.max_requests,
        reset_at=record.window_start + rule.window_ms,
    )


def cleanup_old_records(db: Session, batch_size: int = CLEANUP_BATCH_SIZE) -> dict[str, int]:
    cutoff = clock.now_ms() - RECORD_TTL_MS
    ids = [
        row[0]
        for row in db.query(RateLimitRecord.id)
        .filter(RateLimitRecord.window_start < cutoff)
        .limit(batch_size)
        .all()
    ]
    if ids:
        db.query(RateLimitRecord).filter(RateLimitRecord.id.in_(ids)).delete(
            synchronize_session=False
        )
    db.commit()
    logger.info("cleanup rate limit records: deleted %d", len(ids))
    return {"deleted": len(ids)}


def get_stats(db: Session, caller: Caller | None, *, hours_back: float = 1) -> dict[str, Any]:
    require_admin(caller)

    start = clock.now_ms() - int(hours_back * clock.HOUR_MS)
    records = db.query(RateLimitRecord).filter(RateLimitRecord.window_start >= start).all()

    by_type: dict[str, dict[str, int]] = defaultdict(lambda: {"count": 0, "requests": 0})
    for record in records:
        by_type[record.type]["count"] += 1
        by_type[record.type]["requests"] += record.request_count

    top = sorted(records, key=lambda r: r.request_count, reverse=True)[:10]
    return {
        "total_records": len(records),
        "total_requests": sum(r.request_count for r in records),
        "by_type": dict(by_type),
        "top_clients": [
            {"identifier": r.identifier, "type": r.type, "requests": r.request_count}
            for r in top
        ],
    }
