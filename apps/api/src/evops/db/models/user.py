from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evops.db.base import Base, TimestampMixin, UTCDateTime
from evops.domain.enums import Role, UserStatus

if TYPE_CHECKING:
    from evops.db.models.event import Event


class User(TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255))
    hashed_password: Mapped[str] = mapped_column(String(1024))
    role: Mapped[str] = mapped_column(String(20), default=Role.organizer, index=True)
    status: Mapped[str] = mapped_column(String(20), default=UserStatus.active)
    suspended_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    suspended_reason: Mapped[str | None] = mapped_column(Text, default=None)
    is_active: Mapped[bool] = mapped_column(default=True)

    events: Mapped[list[Event]] = relationship(back_populates="organizer")
