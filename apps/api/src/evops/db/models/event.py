from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evops.db.base import Base, TimestampMixin, UTCDateTime
from evops.domain.enums import EventStatus

if TYPE_CHECKING:
    from evops.db.models.budget_item import BudgetItem
    from evops.db.models.sponsor import EventSponsor
    from evops.db.models.ticket_type import TicketType
    from evops.db.models.user import User
    from evops.db.models.vendor import EventVendor


class Event(TimestampMixin, Base):
    __tablename__ = "events"

    organizer_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    status: Mapped[str] = mapped_column(String(20), default=EventStatus.draft, index=True)
    event_type: Mapped[str | None] = mapped_column(String(50), default=None)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime)
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    venue_name: Mapped[str | None] = mapped_column(String(200), default=None)
    venue_address: Mapped[str | None] = mapped_column(String(500), default=None)
    expected_attendees: Mapped[int | None] = mapped_column(default=None)
    budget: Mapped[float | None] = mapped_column(default=None)
    budget_currency: Mapped[str] = mapped_column(String(3), default="usd")

    organizer: Mapped[User] = relationship(back_populates="events")
    budget_items: Mapped[list[BudgetItem]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    ticket_types: Mapped[list[TicketType]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    vendor_links: Mapped[list[EventVendor]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    sponsor_links: Mapped[list[EventSponsor]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
