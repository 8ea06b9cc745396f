from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evops.db.base import Base, TimestampMixin, UTCDateTime
from evops.domain.enums import BudgetItemStatus

if TYPE_CHECKING:
    from evops.db.models.event import Event


class BudgetItem(TimestampMixin, Base):
    __tablename__ = "budget_items"

    event_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("events.id"), index=True)
    category: Mapped[str] = mapped_column(String(30))
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    estimated_amount: Mapped[float] = mapped_column(default=0.0)
    actual_amount: Mapped[float | None] = mapped_column(default=None)
    status: Mapped[str] = mapped_column(String(20), default=BudgetItemStatus.planned)
    vendor_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("vendors.id"), default=None)
    sponsor_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("sponsors.id"), default=None)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    paid_method: Mapped[str | None] = mapped_column(String(50), default=None)
    invoice_number: Mapped[str | None] = mapped_column(String(100), default=None)
    receipt_url: Mapped[str | None] = mapped_column(String(1000), default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    event: Mapped[Event] = relationship(back_populates="budget_items")
