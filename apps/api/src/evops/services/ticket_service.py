"""Ticket tiers for an event and their sold-count inventory."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from evops.core.clock import as_utc, utcnow
from evops.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from evops.db.models.event import Event
from evops.db.models.ticket_type import TicketType
from evops.domain.enums import EventStatus
from evops.domain.roles import Caller, ensure_active, ensure_event_owner, is_event_owner
from evops.domain.validation import clean_currency
from evops.services.event_service import get_event, get_owned_event

logger = logging.getLogger(__name__)

DEFAULT_MAX_PER_ORDER = 10
UPDATABLE_FIELDS = (
    "name",
    "description",
    "price",
    "currency",
    "quantity",
    "max_per_order",
    "sales_start_at",
    "sales_end_at",
    "is_active",
    "is_hidden",
    "sort_order",
    "perks",
)
REQUIRED_FIELDS = (
    "name",
    "price",
    "currency",
    "max_per_order",
    "is_active",
    "is_hidden",
    "sort_order",
)


def _can_manage(caller: Caller | None, event: Event) -> bool:
    return is_event_owner(caller, event) or (caller is not None and caller.is_admin)


def remaining(ticket_type: TicketType) -> int | None:
    if ticket_type.quantity is None:
        return None
    return max(0, ticket_type.quantity - ticket_type.sold_count)


def is_sold_out(ticket_type: TicketType) -> bool:
    return ticket_type.quantity is not None and ticket_type.sold_count >= ticket_type.quantity


def in_sales_window(ticket_type: TicketType, now: datetime | None = None) -> bool:
    now = now or utcnow()
    start = as_utc(ticket_type.sales_start_at)
    end = as_utc(ticket_type.sales_end_at)
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def _validate_fields(fields: dict[str, Any]) -> None:
    if "name" in fields:
        name = (fields["name"] or "").strip()
        if not name:
            raise ValidationError("Ticket type name cannot be empty")
        fields["name"] = name
    if fields.get("price") is not None and fields["price"] < 0:
        raise ValidationError("Price cannot be negative")
    if fields.get("quantity") is not None and fields["quantity"] < 0:
        raise ValidationError("Quantity cannot be negative")
    if "max_per_order" in fields and (fields["max_per_order"] or 0) < 1:
        raise ValidationError("Max per order must be at least 1")
    start = as_utc(fields.get("sales_start_at"))
    end = as_utc(fields.get("sales_end_at"))
    if start is not None and end is not None and end < start:
        raise ValidationError("Sales end must be after sales start")


def list_ticket_types(
    db: Session,
    caller: Caller | None,
    event_id: uuid.UUID,
    *,
    include_hidden: bool = False,
) -> list[TicketType]:
    """Ticket types of an event in display order.

    Events that are not yet live only show their tiers to the organizer and
    admins, who may also ask for hidden tiers.
    """
    event = get_event(db, event_id)
    if event is None:
        raise NotFoundError("Event")

    can_manage = _can_manage(caller, event)
    if event.status != EventStatus.active and not can_manage:
        return []

    q = db.query(TicketType).filter(TicketType.event_id == event.id)
    if not (include_hidden and can_manage):
        q = q.filter(TicketType.is_hidden.is_(False))
    return q.order_by(TicketType.sort_order.asc()).all()


def get_ticket_type(db: Session, caller: Caller | None, ticket_type_id: uuid.UUID) -> TicketType:
    ticket_type = db.query(TicketType).filter(TicketType.id == ticket_type_id).first()
    if ticket_type is None:
        raise NotFoundError("Ticket type")
    event = ticket_type.event
    if not _can_manage(caller, event) and (
        event.status != EventStatus.active or ticket_type.is_hidden
    ):
        raise NotFoundError("Ticket type")
    return ticket_type


def get_available(db: Session, event_id: uuid.UUID) -> list[TicketType]:
    """Tiers a buyer can pick right now: live event, active, visible, on sale, in stock."""
    event = get_event(db, event_id)
    if event is None or event.status != EventStatus.active:
        return []

    now = utcnow()
    candidates = (
        db.query(TicketType)
        .filter(
            TicketType.event_id == event.id,
            TicketType.is_active.is_(True),
            TicketType.is_hidden.is_(False),
        )
        .order_by(TicketType.sort_order.asc())
        .all()
    )
    return [t for t in candidates if in_sales_window(t, now) and not is_sold_out(t)]


def create_ticket_type(
    db: Session,
    caller: Caller,
    *,
    event_id: uuid.UUID,
    name: str,
    price: float,
    description: str | None = None,
    currency: str = "usd",
    quantity: int | None = None,
    max_per_order: int = DEFAULT_MAX_PER_ORDER,
    sales_start_at: datetime | None = None,
    sales_end_at: datetime | None = None,
    is_active: bool = True,
    is_hidden: bool = False,
    perks: list[str] | None = None,
) -> TicketType:
    ensure_active(caller)
    event = get_owned_event(db, caller, event_id)
    fields = {
        "name": name,
        "price": price,
        "quantity": quantity,
        "max_per_order": max_per_order,
        "sales_start_at": sales_start_at,
        "sales_end_at": sales_end_at,
    }
    _validate_fields(fields)

    max_sort = max((t.sort_order for t in event.ticket_types), default=0)
    ticket_type = TicketType(
        event_id=event.id,
        description=description,
        currency=clean_currency(currency),
        sold_count=0,
        is_active=is_active,
        is_hidden=is_hidden,
        sort_order=max_sort + 1,
        perks=perks,
        **fields,
    )
    db.add(ticket_type)
    db.commit()
    db.refresh(ticket_type)
    return ticket_type


def _get_owned(db: Session, caller: Caller, ticket_type_id: uuid.UUID) -> TicketType:
    ticket_type = db.query(TicketType).filter(TicketType.id == ticket_type_id).first()
    if ticket_type is None:
        raise NotFoundError("Ticket type")
    ensure_event_owner(caller, ticket_type.event)
    return ticket_type


def update_ticket_type(
    db: Session, caller: Caller, ticket_type_id: uuid.UUID, changes: dict[str, Any]
) -> TicketType:
    ensure_active(caller)
    ticket_type = _get_owned(db, caller, ticket_type_id)

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    missing = [f for f in REQUIRED_FIELDS if f in changes and changes[f] is None]
    if missing:
        raise ValidationError(f"Fields cannot be empty: {', '.join(missing)}")
    _validate_fields(changes)

    quantity = changes.get("quantity", ticket_type.quantity)
    if quantity is not None and quantity < ticket_type.sold_count:
        raise ValidationError(
            f"Quantity cannot be less than the {ticket_type.sold_count} tickets already sold"
        )
    if "currency" in changes and changes["currency"] is not None:
        changes["currency"] = clean_currency(changes["currency"])

    for field, value in changes.items():
        setattr(ticket_type, field, value)
    db.commit()
    db.refresh(ticket_type)
    return ticket_type


def remove_ticket_type(db: Session, caller: Caller, ticket_type_id: uuid.UUID) -> None:
    ensure_active(caller)
    ticket_type = _get_owned(db, caller, ticket_type_id)
    if ticket_type.sold_count > 0:
        raise ConflictError("Cannot delete ticket type with sales. Deactivate it instead.")
    db.delete(ticket_type)
    db.commit()


def reorder(
    db: Session, caller: Caller, *, event_id: uuid.UUID, ordered_ids: list[uuid.UUID]
) -> list[TicketType]:
    ensure_active(caller)
    event = get_owned_event(db, caller, event_id)
    by_id = {t.id: t for t in event.ticket_types}
    foreign = [str(i) for i in ordered_ids if i not in by_id]
    if foreign:
        raise ValidationError("Ticket types do not belong to this event", details=foreign)

    for position, ticket_type_id in enumerate(ordered_ids, start=1):
        by_id[ticket_type_id].sort_order = position
    db.commit()
    return sorted(event.ticket_types, key=lambda t: t.sort_order)


def reserve(db: Session, caller: Caller, ticket_type_id: uuid.UUID, quantity: int) -> TicketType:
    """Add ``quantity`` to the sold count if stock allows.

    The check and the increment are one conditional UPDATE, so concurrent
    reservations cannot push ``sold_count`` past ``quantity``.
    """
    ensure_active(caller)
    ticket_type = get_ticket_type(db, caller, ticket_type_id)
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    if quantity > ticket_type.max_per_order:
        raise ValidationError(f"At most {ticket_type.max_per_order} tickets per order")
    if ticket_type.event.status != EventStatus.active or not ticket_type.is_active:
        raise ConflictError("Tickets are not on sale for this event")
    if not in_sales_window(ticket_type):
        raise ConflictError("Ticket sales are closed")

    result = db.execute(
        update(TicketType)
        .where(
            TicketType.id == ticket_type.id,
            or_(
                TicketType.quantity.is_(None),
                TicketType.sold_count + quantity <= TicketType.quantity,
            ),
        )
        .values(sold_count=TicketType.sold_count + quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise ConflictError("Not enough tickets remaining")
    db.commit()
    db.refresh(ticket_type)
    logger.info("reserved %d of ticket_type=%s by=%s", quantity, ticket_type.id, caller.id)
    return ticket_type


def release(db: Session, caller: Caller, ticket_type_id: uuid.UUID, quantity: int) -> TicketType:
    """Return ``quantity`` tickets to stock. Organizer or admin only."""
    ensure_active(caller)
    ticket_type = db.query(TicketType).filter(TicketType.id == ticket_type_id).first()
    if ticket_type is None:
        raise NotFoundError("Ticket type")
    if not _can_manage(caller, ticket_type.event):
        raise ForbiddenError("Not authorized to modify this event")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    result = db.execute(
        update(TicketType)
        .where(TicketType.id == ticket_type.id, TicketType.sold_count >= quantity)
        .values(sold_count=TicketType.sold_count - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise ConflictError("Cannot release more tickets than were sold")
    db.commit()
    db.refresh(ticket_type)
    return ticket_type
