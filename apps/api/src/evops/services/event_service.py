from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from evops.core.client_context import RequestContext
from evops.core.errors import ErrorCode, NotFoundError, ValidationError
from evops.db.models.event import Event
from evops.domain.enums import AuditAction, AuditResource, EventStatus
from evops.domain.roles import Caller, ensure_active, ensure_event_owner, is_event_owner
from evops.domain.validation import (
    clean_currency,
    clean_title,
    ensure_status_transition,
    validate_event_fields,
)
from evops.services import audit_service

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "title",
    "description",
    "status",
    "event_type",
    "start_date",
    "end_date",
    "venue_name",
    "venue_address",
    "expected_attendees",
    "budget",
    "budget_currency",
)
REQUIRED_FIELDS = ("title", "status", "start_date", "budget_currency")


def get_event(db: Session, event_id: uuid.UUID) -> Event | None:
    return db.query(Event).filter(Event.id == event_id).first()


def get_owned_event(db: Session, caller: Caller, event_id: uuid.UUID) -> Event:
    return ensure_event_owner(caller, get_event(db, event_id))


def get_visible_event(db: Session, caller: Caller | None, event_id: uuid.UUID) -> Event:
    """Owners and admins see any event; everyone else only active ones."""
    event = get_event(db, event_id)
    if event is None:
        raise NotFoundError("Event")
    if event.status == EventStatus.active:
        return event
    if is_event_owner(caller, event) or (caller is not None and caller.is_admin):
        return event
    raise NotFoundError("Event")


def list_my_events(db: Session, caller: Caller, status: str | None = None) -> list[Event]:
    q = db.query(Event).filter(Event.organizer_id == caller.id)
    if status:
        q = q.filter(Event.status == status)
    return q.order_by(Event.start_date.asc()).all()


def create_event(
    db: Session,
    caller: Caller,
    *,
    title: str,
    start_date: datetime,
    end_date: datetime | None = None,
    description: str | None = None,
    event_type: str | None = None,
    venue_name: str | None = None,
    venue_address: str | None = None,
    expected_attendees: int | None = None,
    budget: float | None = None,
    budget_currency: str = "usd",
    context: RequestContext | None = None,
) -> Event:
    ensure_active(caller)
    title = clean_title(title)
    budget_currency = clean_currency(budget_currency)
    validate_event_fields(
        description=description,
        venue_name=venue_name,
        venue_address=venue_address,
        budget=budget,
        expected_attendees=expected_attendees,
        start_date=start_date,
        end_date=end_date,
        check_start_date=True,
    )

    event = Event(
        organizer_id=caller.id,
        title=title,
        description=description,
        status=EventStatus.draft,
        event_type=event_type,
        start_date=start_date,
        end_date=end_date,
        venue_name=venue_name,
        venue_address=venue_address,
        expected_attendees=expected_attendees,
        budget=budget,
        budget_currency=budget_currency,
    )
    db.add(event)
    db.flush()

    audit_service.log_action(
        db,
        action=AuditAction.event_created,
        resource=AuditResource.event,
        resource_id=str(event.id),
        actor=caller,
        context=context,
        metadata={"title": title},
    )
    db.commit()
    db.refresh(event)
    logger.info("event created: id=%s organizer=%s", event.id, caller.id)
    return event


def update_event(
    db: Session,
    caller: Caller,
    event_id: uuid.UUID,
    changes: dict[str, Any],
    *,
    context: RequestContext | None = None,
) -> Event:
    """Apply ``changes`` to an event the caller organizes.

    A status change must follow the event lifecycle; moving to ``active`` is
    additionally recorded as ``event_published``.
    """
    ensure_active(caller)
    event = get_owned_event(db, caller, event_id)

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    for field in REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationError(
                f"{field} cannot be empty", code=ErrorCode.MISSING_REQUIRED_FIELD
            )

    if "title" in changes:
        changes["title"] = clean_title(changes["title"])
    if "budget_currency" in changes:
        changes["budget_currency"] = clean_currency(changes["budget_currency"])

    start_date = changes.get("start_date", event.start_date)
    end_date = changes.get("end_date", event.end_date)
    validate_event_fields(
        description=changes.get("description"),
        venue_name=changes.get("venue_name"),
        venue_address=changes.get("venue_address"),
        budget=changes.get("budget"),
        expected_attendees=changes.get("expected_attendees"),
        start_date=start_date,
        end_date=end_date,
        check_start_date="start_date" in changes,
    )

    previous_status = event.status
    new_status = changes.get("status")
    if new_status is not None and new_status != previous_status:
        ensure_status_transition(previous_status, new_status)

    for field, value in changes.items():
        setattr(event, field, value)

    audit_service.log_action(
        db,
        action=AuditAction.event_updated,
        resource=AuditResource.event,
        resource_id=str(event.id),
        actor=caller,
        context=context,
        metadata={"fields": sorted(changes)},
    )
    if new_status == EventStatus.active and previous_status != EventStatus.active:
        audit_service.log_action(
            db,
            action=AuditAction.event_published,
            resource=AuditResource.event,
            resource_id=str(event.id),
            actor=caller,
            context=context,
            metadata={"previous_status": previous_status},
        )
    db.commit()
    db.refresh(event)
    return event


def delete_event(
    db: Session,
    caller: Caller,
    event_id: uuid.UUID,
    *,
    context: RequestContext | None = None,
) -> None:
    ensure_active(caller)
    event = get_owned_event(db, caller, event_id)

    audit_service.log_action(
        db,
        action=AuditAction.event_deleted,
        resource=AuditResource.event,
        resource_id=str(event.id),
        actor=caller,
        context=context,
        metadata={"title": event.title, "status": event.status},
    )
    db.delete(event)
    db.commit()
    logger.info("event deleted: id=%s by=%s", event_id, caller.id)
