from __future__ import annotations

from sqlalchemy import JSON, BigInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from evops.db.base import Base


class FailedLoginAttempt(Base):
    """Recent failed logins for one identifier (lower-cased email)."""

    __tablename__ = "failed_login_attempts"

    identifier: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    attempts: Mapped[list[int]] = mapped_column(JSON, default=list)
    locked_until: Mapped[int | None] = mapped_column(BigInteger, default=None)
    created_at: Mapped[int] = mapped_column(BigInteger)


class RateLimitRecord(Base):
    """Request counter for one ``(identifier, type)`` pair in its current window."""

    __tablename__ = "rate_limit_records"
    __table_args__ = (UniqueConstraint("identifier", "type"),)

    identifier: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(20))
    request_count: Mapped[int] = mapped_column(default=0)
    window_start: Mapped[int] = mapped_column(BigInteger, index=True)
    last_request_at: Mapped[int] = mapped_column(BigInteger)
