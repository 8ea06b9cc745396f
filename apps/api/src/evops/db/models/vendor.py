from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evops.db.base import Base, TimestampMixin, UTCDateTime
from evops.domain.enums import ReviewStatus, VendorLinkStatus

if TYPE_CHECKING:
    from evops.db.models.event import Event


class Vendor(TimestampMixin, Base):
    __tablename__ = "vendors"

    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    category: Mapped[str] = mapped_column(String(100), index=True)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    contact_email: Mapped[str | None] = mapped_column(String(320), default=None)
    website: Mapped[str | None] = mapped_column(String(1000), default=None)
    submitted_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), default=None)
    status: Mapped[str] = mapped_column(String(20), default=ReviewStatus.pending, index=True)
    verified: Mapped[bool] = mapped_column(default=False)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), default=None)
    reviewed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    review_notes: Mapped[str | None] = mapped_column(Text, default=None)
    rejection_reason: Mapped[str | None] = mapped_column(Text, default=None)

    event_links: Mapped[list[EventVendor]] = relationship(back_populates="vendor")


class EventVendor(TimestampMixin, Base):
    __tablename__ = "event_vendors"
    __table_args__ = (UniqueConstraint("event_id", "vendor_id"),)

    event_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("events.id"), index=True)
    vendor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("vendors.id"), index=True)
    status: Mapped[str] = mapped_column(String(20), default=VendorLinkStatus.inquiry)
    proposed_budget: Mapped[float | None] = mapped_column(default=None)
    final_budget: Mapped[float | None] = mapped_column(default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    event: Mapped[Event] = relationship(back_populates="vendor_links")
    vendor: Mapped[Vendor] = relationship(back_populates="event_links")
