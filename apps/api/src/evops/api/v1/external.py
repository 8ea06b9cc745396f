"""Read-only endpoints for integrations authenticating with an API key."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from evops.api.v1.events import event_to_dict
from evops.core.security import require_api_key
from evops.db.session import get_db
from evops.domain.enums import EventStatus
from evops.domain.roles import Caller
from evops.services import budget_service, event_service

router = APIRouter(prefix="/external", tags=["external"])

DB = Annotated[Session, Depends(get_db)]
EventsReader = Annotated[Caller, Depends(require_api_key("events:read"))]
BudgetReader = Annotated[Caller, Depends(require_api_key("budget:read"))]


@router.get("/events")
def list_events(caller: EventsReader, db: DB, status: EventStatus | None = None):
    return [event_to_dict(e) for e in event_service.list_my_events(db, caller, status=status)]


@router.get("/events/{event_id}/budget-summary")
def budget_summary(event_id: uuid.UUID, caller: BudgetReader, db: DB):
    return budget_service.get_summary(db, caller, event_id)
