from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from evops.core.security import CurrentUser, OptionalUser, RequestCtx, enforce_rate_limit
from evops.db.session import get_db
from evops.domain.enums import EventStatus, RateLimitType
from evops.services import event_service

router = APIRouter(
    prefix="/events",
    tags=["events"],
    dependencies=[Depends(enforce_rate_limit(RateLimitType.api))],
)

DB = Annotated[Session, Depends(get_db)]


# -- Schemas ------------------------------------------------------------------


class EventCreate(BaseModel):
    title: str
    start_date: datetime
    end_date: datetime | None = None
    description: str | None = None
    event_type: str | None = None
    venue_name: str | None = None
    venue_address: str | None = None
    expected_attendees: int | None = None
    budget: float | None = None
    budget_currency: str = "usd"


class EventUpdate(BaseModel):
    title: str | None = None
    status: EventStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    description: str | None = None
    event_type: str | None = None
    venue_name: str | None = None
    venue_address: str | None = None
    expected_attendees: int | None = None
    budget: float | None = None
    budget_currency: str | None = None


# -- Helpers ------------------------------------------------------------------


def event_to_dict(e):
    return {
        "id": str(e.id),
        "organizer_id": str(e.organizer_id),
        "title": e.title,
        "description": e.description,
        "status": e.status,
        "event_type": e.event_type,
        "start_date": e.start_date.isoformat() if e.start_date else None,
        "end_date": e.end_date.isoformat() if e.end_date else None,
        "venue_name": e.venue_name,
        "venue_address": e.venue_address,
        "expected_attendees": e.expected_attendees,
        "budget": e.budget,
        "budget_currency": e.budget_currency,
        "created_at": e.created_at.isoformat() if e.created_at else None,
        "updated_at": e.updated_at.isoformat() if e.updated_at else None,
    }


# -- Endpoints ----------------------------------------------------------------


@router.post("", status_code=status.HTTP_201_CREATED)
def create(body: EventCreate, user: CurrentUser, ctx: RequestCtx, db: DB):
    event = event_service.create_event(db, user, context=ctx, **body.model_dump())
    return event_to_dict(event)


@router.get("")
def list_mine(user: CurrentUser, db: DB, status: EventStatus | None = None):
    return [event_to_dict(e) for e in event_service.list_my_events(db, user, status=status)]


@router.get("/{event_id}")
def get_by_id(event_id: uuid.UUID, user: OptionalUser, db: DB):
    return event_to_dict(event_service.get_visible_event(db, user, event_id))


@router.patch("/{event_id}")
def update(event_id: uuid.UUID, body: EventUpdate, user: CurrentUser, ctx: RequestCtx, db: DB):
    """Partial update. A ``status`` change must follow the event lifecycle."""
    changes = body.model_dump(exclude_unset=True)
    event = event_service.update_event(db, user, event_id, changes, context=ctx)
    return event_to_dict(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(event_id: uuid.UUID, user: CurrentUser, ctx: RequestCtx, db: DB):
    event_service.delete_event(db, user, event_id, context=ctx)
