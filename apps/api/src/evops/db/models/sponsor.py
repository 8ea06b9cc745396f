from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evops.db.base import Base, TimestampMixin, UTCDateTime
from evops.domain.enums import ReviewStatus, SponsorLinkStatus

if TYPE_CHECKING:
    from evops.db.models.event import Event


class Sponsor(TimestampMixin, Base):
    __tablename__ = "sponsors"

    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    industry: Mapped[str] = mapped_column(String(100), index=True)
    budget_min: Mapped[float | None] = mapped_column(default=None)
    budget_max: Mapped[float | None] = mapped_column(default=None)
    contact_email: Mapped[str | None] = mapped_column(String(320), default=None)
    website: Mapped[str | None] = mapped_column(String(1000), default=None)
    submitted_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), default=None)
    status: Mapped[str] = mapped_column(String(20), default=ReviewStatus.pending, index=True)
    verified: Mapped[bool] = mapped_column(default=False)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), default=None)
    reviewed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    review_notes: Mapped[str | None] = mapped_column(Text, default=None)
    rejection_reason: Mapped[str | None] = mapped_column(Text, default=None)

    event_links: Mapped[list[EventSponsor]] = relationship(back_populates="sponsor")


class EventSponsor(TimestampMixin, Base):
    __tablename__ = "event_sponsors"
    __table_args__ = (UniqueConstraint("event_id", "sponsor_id"),)

    event_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("events.id"), index=True)
    sponsor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("sponsors.id"), index=True)
    status: Mapped[str] = mapped_column(String(20), default=SponsorLinkStatus.inquiry)
    proposed_budget: Mapped[float | None] = mapped_column(default=None)
    final_budget: Mapped[float | None] = mapped_column(default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    event: Mapped[Event] = relationship(back_populates="sponsor_links")
    sponsor: Mapped[Sponsor] = relationship(back_populates="event_links")
