from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evops.db.base import Base, TimestampMixin, UTCDateTime

if TYPE_CHECKING:
    from evops.db.models.event import Event


class TicketType(TimestampMixin, Base):
    __tablename__ = "ticket_types"
    __table_args__ = (
        CheckConstraint("sold_count >= 0", name="ck_ticket_types_sold_nonneg"),
        CheckConstraint(
            "quantity IS NULL OR sold_count <= quantity", name="ck_ticket_types_sold_le_qty"
        ),
    )

    event_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("events.id"), index=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    price: Mapped[float] = mapped_column(default=0.0)
    currency: Mapped[str] = mapped_column(String(3), default="usd")
    quantity: Mapped[int | None] = mapped_column(default=None)
    sold_count: Mapped[int] = mapped_column(default=0)
    max_per_order: Mapped[int] = mapped_column(default=10)
    sales_start_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    sales_end_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    is_hidden: Mapped[bool] = mapped_column(default=False)
    sort_order: Mapped[int] = mapped_column(default=0)
    perks: Mapped[list[str] | None] = mapped_column(JSON, default=None)

    event: Mapped[Event] = relationship(back_populates="ticket_types")
