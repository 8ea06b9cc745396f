from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from evops.core.security import CurrentUser, OptionalUser, enforce_rate_limit
from evops.db.session import get_db
from evops.domain.enums import RateLimitType
from evops.services import ticket_service

router = APIRouter(
    tags=["tickets"],
    dependencies=[Depends(enforce_rate_limit(RateLimitType.api))],
)

DB = Annotated[Session, Depends(get_db)]


# -- Schemas ------------------------------------------------------------------


class TicketTypeCreate(BaseModel):
    name: str
    price: float
    description: str | None = None
    currency: str = "usd"
    quantity: int | None = None
    max_per_order: int = ticket_service.DEFAULT_MAX_PER_ORDER
    sales_start_at: datetime | None = None
    sales_end_at: datetime | None = None
    is_active: bool = True
    is_hidden: bool = False
    perks: list[str] | None = None


class TicketTypeUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    price: float | None = None
    currency: str | None = None
    quantity: int | None = None
    max_per_order: int | None = None
    sales_start_at: datetime | None = None
    sales_end_at: datetime | None = None
    is_active: bool | None = None
    is_hidden: bool | None = None
    sort_order: int | None = None
    perks: list[str] | None = None


class ReorderRequest(BaseModel):
    ordered_ids: list[uuid.UUID]


class QuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


# -- Helpers ------------------------------------------------------------------


def _ticket_to_dict(t):
    return {
        "id": str(t.id),
        "event_id": str(t.event_id),
        "name": t.name,
        "description": t.description,
        "price": t.price,
        "currency": t.currency,
        "quantity": t.quantity,
        "sold_count": t.sold_count,
        "remaining": ticket_service.remaining(t),
        "is_sold_out": ticket_service.is_sold_out(t),
        "max_per_order": t.max_per_order,
        "sales_start_at": t.sales_start_at.isoformat() if t.sales_start_at else None,
        "sales_end_at": t.sales_end_at.isoformat() if t.sales_end_at else None,
        "is_active": t.is_active,
        "is_hidden": t.is_hidden,
        "sort_order": t.sort_order,
        "perks": t.perks or [],
    }


# -- Endpoints ----------------------------------------------------------------


@router.get("/events/{event_id}/ticket-types")
def list_for_event(
    event_id: uuid.UUID, user: OptionalUser, db: DB, include_hidden: bool = False
):
    ticket_types = ticket_service.list_ticket_types(
        db, user, event_id, include_hidden=include_hidden
    )
    return [_ticket_to_dict(t) for t in ticket_types]


@router.get("/events/{event_id}/ticket-types/available")
def available(event_id: uuid.UUID, db: DB):
    """Tiers currently on sale for a live event."""
    return [_ticket_to_dict(t) for t in ticket_service.get_available(db, event_id)]


@router.post("/events/{event_id}/ticket-types", status_code=status.HTTP_201_CREATED)
def create(event_id: uuid.UUID, body: TicketTypeCreate, user: CurrentUser, db: DB):
    ticket_type = ticket_service.create_ticket_type(
        db, user, event_id=event_id, **body.model_dump()
    )
    return _ticket_to_dict(ticket_type)


@router.post("/events/{event_id}/ticket-types/reorder")
def reorder(event_id: uuid.UUID, body: ReorderRequest, user: CurrentUser, db: DB):
    ticket_types = ticket_service.reorder(
        db, user, event_id=event_id, ordered_ids=body.ordered_ids
    )
    return [_ticket_to_dict(t) for t in ticket_types]


@router.get("/ticket-types/{ticket_type_id}")
def get_by_id(ticket_type_id: uuid.UUID, user: OptionalUser, db: DB):
    return _ticket_to_dict(ticket_service.get_ticket_type(db, user, ticket_type_id))


@router.patch("/ticket-types/{ticket_type_id}")
def update(ticket_type_id: uuid.UUID, body: TicketTypeUpdate, user: CurrentUser, db: DB):
    ticket_type = ticket_service.update_ticket_type(
        db, user, ticket_type_id, body.model_dump(exclude_unset=True)
    )
    return _ticket_to_dict(ticket_type)


@router.delete("/ticket-types/{ticket_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(ticket_type_id: uuid.UUID, user: CurrentUser, db: DB):
    ticket_service.remove_ticket_type(db, user, ticket_type_id)


@router.post("/ticket-types/{ticket_type_id}/reserve")
def reserve(ticket_type_id: uuid.UUID, body: QuantityRequest, user: CurrentUser, db: DB):
    ticket_type = ticket_service.reserve(db, user, ticket_type_id, body.quantity)
    return _ticket_to_dict(ticket_type)


@router.post("/ticket-types/{ticket_type_id}/release")
def release(ticket_type_id: uuid.UUID, body: QuantityRequest, user: CurrentUser, db: DB):
    ticket_type = ticket_service.release(db, user, ticket_type_id, body.quantity)
    return _ticket_to_dict(ticket_type)
