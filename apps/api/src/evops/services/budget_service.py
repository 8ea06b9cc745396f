from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Any

from sqlalchemy.orm import Session

from evops.core.clock import utcnow
from evops.core.errors import NotFoundError, ValidationError
from evops.db.models.budget_item import BudgetItem
from evops.domain.enums import BudgetCategory, BudgetItemStatus
from evops.domain.roles import Caller, ensure_active, ensure_event_owner, is_event_owner
from evops.services.event_service import get_owned_event

UPDATABLE_FIELDS = (
    "category",
    "name",
    "description",
    "estimated_amount",
    "actual_amount",
    "status",
    "vendor_id",
    "sponsor_id",
    "paid_at",
    "paid_method",
    "invoice_number",
    "receipt_url",
    "notes",
)
REQUIRED_FIELDS = ("category", "name", "estimated_amount", "status")


def _check_category(category: str) -> str:
    try:
        return BudgetCategory(category).value
    except ValueError:
        raise ValidationError(f"Unknown budget category: {category!r}") from None


def _check_status(status: str) -> str:
    try:
        return BudgetItemStatus(status).value
    except ValueError:
        raise ValidationError(f"Unknown budget item status: {status!r}") from None


def _check_amount(value: float | None, label: str) -> None:
    if value is not None and value < 0:
        raise ValidationError(f"{label} cannot be negative")


def _get_owned_item(db: Session, caller: Caller, item_id: uuid.UUID) -> BudgetItem:
    item = db.query(BudgetItem).filter(BudgetItem.id == item_id).first()
    if item is None:
        raise NotFoundError("Budget item")
    ensure_event_owner(caller, item.event)
    return item


def list_by_event(db: Session, caller: Caller, event_id: uuid.UUID) -> list[BudgetItem]:
    event = get_owned_event(db, caller, event_id)
    return (
        db.query(BudgetItem)
        .filter(BudgetItem.event_id == event.id)
        .order_by(BudgetItem.created_at.asc())
        .all()
    )


def _committed_value(item: BudgetItem) -> float:
    return item.actual_amount or item.estimated_amount


def get_summary(db: Session, caller: Caller, event_id: uuid.UUID) -> dict[str, Any]:
    """Totals for the event's budget; cancelled items are left out entirely."""
    event = get_owned_event(db, caller, event_id)
    items = [
        i
        for i in db.query(BudgetItem).filter(BudgetItem.event_id == event.id).all()
        if i.status != BudgetItemStatus.cancelled
    ]

    total_estimated = sum(i.estimated_amount for i in items)
    total_actual = sum(i.actual_amount or 0 for i in items)
    total_paid = sum(_committed_value(i) for i in items if i.status == BudgetItemStatus.paid)
    total_committed = sum(
        _committed_value(i) for i in items if i.status == BudgetItemStatus.committed
    )

    by_category: dict[str, dict[str, float]] = defaultdict(
        lambda: {"estimated": 0.0, "actual": 0.0, "count": 0}
    )
    for item in items:
        bucket = by_category[item.category]
        bucket["estimated"] += item.estimated_amount
        bucket["actual"] += item.actual_amount or 0
        bucket["count"] += 1

    variance = total_actual - total_estimated
    event_budget = event.budget or 0
    return {
        "total_estimated": total_estimated,
        "total_actual": total_actual,
        "total_paid": total_paid,
        "total_committed": total_committed,
        "total_planned": total_estimated - total_paid - total_committed,
        "variance": variance,
        "variance_percent": (variance / total_estimated * 100) if total_estimated > 0 else 0,
        "item_count": len(items),
        "by_category": dict(by_category),
        "event_budget": event_budget,
        "remaining": event_budget - total_estimated,
    }


def create_item(
    db: Session,
    caller: Caller,
    *,
    event_id: uuid.UUID,
    category: str,
    name: str,
    estimated_amount: float,
    description: str | None = None,
    actual_amount: float | None = None,
    status: str = BudgetItemStatus.planned,
    vendor_id: uuid.UUID | None = None,
    sponsor_id: uuid.UUID | None = None,
    notes: str | None = None,
) -> BudgetItem:
    ensure_active(caller)
    event = get_owned_event(db, caller, event_id)
    name = name.strip()
    if not name:
        raise ValidationError("Budget item name cannot be empty")
    _check_amount(estimated_amount, "Estimated amount")
    _check_amount(actual_amount, "Actual amount")
    status = _check_status(status)

    item = BudgetItem(
        event_id=event.id,
        category=_check_category(category),
        name=name,
        description=description,
        estimated_amount=estimated_amount,
        actual_amount=actual_amount,
        status=status,
        vendor_id=vendor_id,
        sponsor_id=sponsor_id,
        notes=notes,
        paid_at=utcnow() if status == BudgetItemStatus.paid else None,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_item(
    db: Session, caller: Caller, item_id: uuid.UUID, changes: dict[str, Any]
) -> BudgetItem:
    """Patch a budget item. The first move into ``paid`` stamps ``paid_at``
    unless the caller supplies one."""
    ensure_active(caller)
    item = _get_owned_item(db, caller, item_id)

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    missing = [f for f in REQUIRED_FIELDS if f in changes and changes[f] is None]
    if missing:
        raise ValidationError(f"Fields cannot be empty: {', '.join(missing)}")
    if "category" in changes:
        changes["category"] = _check_category(changes["category"])
    if "status" in changes:
        changes["status"] = _check_status(changes["status"])
    _check_amount(changes.get("estimated_amount"), "Estimated amount")
    _check_amount(changes.get("actual_amount"), "Actual amount")

    if (
        changes.get("status") == BudgetItemStatus.paid
        and not changes.get("paid_at")
        and item.status != BudgetItemStatus.paid
    ):
        changes["paid_at"] = utcnow()

    for field, value in changes.items():
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, caller: Caller, item_id: uuid.UUID) -> None:
    ensure_active(caller)
    item = _get_owned_item(db, caller, item_id)
    db.delete(item)
    db.commit()


def bulk_update_status(
    db: Session, caller: Caller, *, item_ids: list[uuid.UUID], status: str
) -> int:
    """Set ``status`` on every listed item the caller owns; returns how many changed.

    Missing items and items on other organizers' events are skipped.
    """
    ensure_active(caller)
    status = _check_status(status)
    if not item_ids:
        return 0

    items = db.query(BudgetItem).filter(BudgetItem.id.in_(item_ids)).all()
    now = utcnow()
    updated = 0
    for item in items:
        if not is_event_owner(caller, item.event):
            continue
        if status == BudgetItemStatus.paid and item.status != BudgetItemStatus.paid:
            item.paid_at = now
        item.status = status
        updated += 1
    db.commit()
    return updated
