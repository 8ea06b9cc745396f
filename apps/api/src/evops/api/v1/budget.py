from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from evops.core.security import CurrentUser, enforce_rate_limit
from evops.db.session import get_db
from evops.domain.enums import (
    BUDGET_CATEGORY_LABELS,
    BudgetCategory,
    BudgetItemStatus,
    RateLimitType,
)
from evops.services import budget_service

router = APIRouter(
    tags=["budget"],
    dependencies=[Depends(enforce_rate_limit(RateLimitType.api))],
)

DB = Annotated[Session, Depends(get_db)]


# -- Schemas ------------------------------------------------------------------


class BudgetItemCreate(BaseModel):
    category: BudgetCategory
    name: str
    estimated_amount: float
    description: str | None = None
    actual_amount: float | None = None
    status: BudgetItemStatus = BudgetItemStatus.planned
    vendor_id: uuid.UUID | None = None
    sponsor_id: uuid.UUID | None = None
    notes: str | None = None


class BudgetItemUpdate(BaseModel):
    category: BudgetCategory | None = None
    name: str | None = None
    description: str | None = None
    estimated_amount: float | None = None
    actual_amount: float | None = None
    status: BudgetItemStatus | None = None
    vendor_id: uuid.UUID | None = None
    sponsor_id: uuid.UUID | None = None
    paid_at: datetime | None = None
    paid_method: str | None = None
    invoice_number: str | None = None
    receipt_url: str | None = None
    notes: str | None = None


class BulkStatusUpdate(BaseModel):
    ids: list[uuid.UUID]
    status: BudgetItemStatus


# -- Helpers ------------------------------------------------------------------


def _item_to_dict(i):
    return {
        "id": str(i.id),
        "event_id": str(i.event_id),
        "category": i.category,
        "name": i.name,
        "description": i.description,
        "estimated_amount": i.estimated_amount,
        "actual_amount": i.actual_amount,
        "status": i.status,
        "vendor_id": str(i.vendor_id) if i.vendor_id else None,
        "sponsor_id": str(i.sponsor_id) if i.sponsor_id else None,
        "paid_at": i.paid_at.isoformat() if i.paid_at else None,
        "paid_method": i.paid_method,
        "invoice_number": i.invoice_number,
        "receipt_url": i.receipt_url,
        "notes": i.notes,
        "created_at": i.created_at.isoformat() if i.created_at else None,
    }


# -- Endpoints ----------------------------------------------------------------


@router.get("/budget-categories")
def categories():
    return [{"value": c.value, "label": label} for c, label in BUDGET_CATEGORY_LABELS.items()]


@router.get("/events/{event_id}/budget-items")
def list_items(event_id: uuid.UUID, user: CurrentUser, db: DB):
    return [_item_to_dict(i) for i in budget_service.list_by_event(db, user, event_id)]


@router.get("/events/{event_id}/budget-summary")
def summary(event_id: uuid.UUID, user: CurrentUser, db: DB):
    return budget_service.get_summary(db, user, event_id)


@router.post("/events/{event_id}/budget-items", status_code=status.HTTP_201_CREATED)
def create_item(event_id: uuid.UUID, body: BudgetItemCreate, user: CurrentUser, db: DB):
    item = budget_service.create_item(db, user, event_id=event_id, **body.model_dump())
    return _item_to_dict(item)


@router.post("/budget-items/bulk-status")
def bulk_status(body: BulkStatusUpdate, user: CurrentUser, db: DB):
    """Mark several items at once; items the caller does not own are skipped."""
    updated = budget_service.bulk_update_status(db, user, item_ids=body.ids, status=body.status)
    return {"updated": updated}


@router.patch("/budget-items/{item_id}")
def update_item(item_id: uuid.UUID, body: BudgetItemUpdate, user: CurrentUser, db: DB):
    item = budget_service.update_item(db, user, item_id, body.model_dump(exclude_unset=True))
    return _item_to_dict(item)


@router.delete("/budget-items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(item_id: uuid.UUID, user: CurrentUser, db: DB):
    budget_service.remove_item(db, user, item_id)
