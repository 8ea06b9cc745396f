"""Vendor and sponsor directories, their admin review, and event links.

Vendors and sponsors follow the same lifecycle: anyone signed in submits a
listing, an admin approves or rejects it, and organizers attach approved
listings to their events. ``PartnerKind`` captures what differs between the
two so every operation below is written once.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from sqlalchemy.orm import Session

from evops.core.client_context import RequestContext
from evops.core.clock import utcnow
from evops.core.errors import ConflictError, NotFoundError, ValidationError
from evops.db.base import Base
from evops.db.models.sponsor import EventSponsor, Sponsor
from evops.db.models.vendor import EventVendor, Vendor
from evops.domain.enums import (
    AuditAction,
    AuditResource,
    ReviewStatus,
    SponsorLinkStatus,
    VendorLinkStatus,
)
from evops.domain.roles import Caller, ensure_active, ensure_event_owner, require_admin
from evops.domain.validation import clean_business_name, validate_contact
from evops.services import audit_service
from evops.services.event_service import get_owned_event

logger = logging.getLogger(__name__)

DESCRIPTION_MAX = 5000
GROUP_MAX = 100
ADMIN_LIST_LIMIT = 100


@dataclass(frozen=True)
class PartnerKind:
    label: str
    model: type[Base]
    link_model: type[Base]
    link_fk: str
    group_field: str
    link_statuses: type[StrEnum]
    resource: AuditResource
    approved_action: AuditAction
    rejected_action: AuditAction


VENDORS = PartnerKind(
    label="Vendor",
    model=Vendor,
    link_model=EventVendor,
    link_fk="vendor_id",
    group_field="category",
    link_statuses=VendorLinkStatus,
    resource=AuditResource.vendor,
    approved_action=AuditAction.vendor_approved,
    rejected_action=AuditAction.vendor_rejected,
)

SPONSORS = PartnerKind(
    label="Sponsor",
    model=Sponsor,
    link_model=EventSponsor,
    link_fk="sponsor_id",
    group_field="industry",
    link_statuses=SponsorLinkStatus,
    resource=AuditResource.sponsor,
    approved_action=AuditAction.sponsor_approved,
    rejected_action=AuditAction.sponsor_rejected,
)


# -- Directory ----------------------------------------------------------------


def get_partner(db: Session, kind: PartnerKind, partner_id: uuid.UUID):
    return db.query(kind.model).filter(kind.model.id == partner_id).first()


def get_visible_partner(
    db: Session, kind: PartnerKind, caller: Caller | None, partner_id: uuid.UUID
):
    """Approved listings are public; the rest only show to admins."""
    partner = get_partner(db, kind, partner_id)
    if partner is None:
        raise NotFoundError(kind.label)
    if partner.status != ReviewStatus.approved and not (caller and caller.is_admin):
        raise NotFoundError(kind.label)
    return partner


def list_approved(
    db: Session,
    kind: PartnerKind,
    *,
    group: str | None = None,
    search: str | None = None,
) -> list:
    """Approved listings, optionally narrowed to a category/industry and a name search."""
    partners = (
        db.query(kind.model)
        .filter(kind.model.status == ReviewStatus.approved)
        .order_by(kind.model.name.asc())
        .all()
    )
    if group and group != "all":
        partners = [p for p in partners if getattr(p, kind.group_field) == group]
    if search and search.strip():
        needle = search.strip().lower()
        partners = [
            p
            for p in partners
            if needle in p.name.lower() or needle in (p.description or "").lower()
        ]
    return partners


def list_groups(db: Session, kind: PartnerKind) -> list[str]:
    column = getattr(kind.model, kind.group_field)
    rows = (
        db.query(column)
        .filter(kind.model.status == ReviewStatus.approved)
        .distinct()
        .all()
    )
    return sorted(row[0] for row in rows)


def _check_budget_range(fields: dict[str, Any]) -> None:
    low, high = fields.get("budget_min"), fields.get("budget_max")
    if low is not None and low < 0:
        raise ValidationError("Minimum budget cannot be negative")
    if high is not None and high < 0:
        raise ValidationError("Maximum budget cannot be negative")
    if low is not None and high is not None and low > high:
        raise ValidationError("Minimum budget cannot exceed maximum budget")


def create_partner(
    db: Session,
    kind: PartnerKind,
    caller: Caller,
    *,
    name: str,
    group: str,
    description: str | None = None,
    contact_email: str | None = None,
    website: str | None = None,
    **extra: Any,
):
    """Submit a listing for review; it starts out ``pending``."""
    ensure_active(caller)
    name = clean_business_name(name)
    group = (group or "").strip()
    if not group:
        raise ValidationError(f"{kind.group_field.capitalize()} is required")
    if len(group) > GROUP_MAX:
        raise ValidationError(
            f"{kind.group_field.capitalize()} must be {GROUP_MAX} characters or less"
        )
    if description and len(description) > DESCRIPTION_MAX:
        raise ValidationError(f"Description must be {DESCRIPTION_MAX} characters or less")
    validate_contact(contact_email, website)
    _check_budget_range(extra)

    partner = kind.model(
        name=name,
        description=description,
        contact_email=contact_email,
        website=website,
        submitted_by=caller.id,
        status=ReviewStatus.pending,
        verified=False,
        **{kind.group_field: group},
        **extra,
    )
    db.add(partner)
    db.commit()
    db.refresh(partner)
    logger.info("%s submitted: id=%s by=%s", kind.label.lower(), partner.id, caller.id)
    return partner


# -- Admin review -------------------------------------------------------------


def list_for_admin(
    db: Session,
    kind: PartnerKind,
    caller: Caller | None,
    *,
    status: str | None = None,
    group: str | None = None,
    limit: int = ADMIN_LIST_LIMIT,
) -> list:
    require_admin(caller)
    q = db.query(kind.model)
    if status:
        q = q.filter(kind.model.status == status)
    if group:
        q = q.filter(getattr(kind.model, kind.group_field) == group)
    return q.order_by(kind.model.created_at.desc()).limit(limit).all()


def pending_count(db: Session, kind: PartnerKind, caller: Caller | None) -> int:
    require_admin(caller)
    return db.query(kind.model).filter(kind.model.status == ReviewStatus.pending).count()


def approve(
    db: Session,
    kind: PartnerKind,
    caller: Caller | None,
    partner_id: uuid.UUID,
    *,
    notes: str | None = None,
    context: RequestContext | None = None,
):
    caller = require_admin(caller)
    partner = get_partner(db, kind, partner_id)
    if partner is None:
        raise NotFoundError(kind.label)
    if partner.status == ReviewStatus.approved:
        raise ConflictError(f"{kind.label} is already approved")

    partner.status = ReviewStatus.approved
    partner.verified = True
    partner.reviewed_by = caller.id
    partner.reviewed_at = utcnow()
    partner.review_notes = notes
    partner.rejection_reason = None

    audit_service.log_action(
        db,
        action=kind.approved_action,
        resource=kind.resource,
        resource_id=str(partner.id),
        actor=caller,
        context=context,
        metadata={"name": partner.name, kind.group_field: getattr(partner, kind.group_field)},
    )
    db.commit()
    db.refresh(partner)
    return partner


def reject(
    db: Session,
    kind: PartnerKind,
    caller: Caller | None,
    partner_id: uuid.UUID,
    *,
    reason: str,
    notes: str | None = None,
    context: RequestContext | None = None,
):
    caller = require_admin(caller)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")
    partner = get_partner(db, kind, partner_id)
    if partner is None:
        raise NotFoundError(kind.label)
    if partner.status == ReviewStatus.rejected:
        raise ConflictError(f"{kind.label} is already rejected")

    partner.status = ReviewStatus.rejected
    partner.verified = False
    partner.reviewed_by = caller.id
    partner.reviewed_at = utcnow()
    partner.rejection_reason = reason
    partner.review_notes = notes

    audit_service.log_action(
        db,
        action=kind.rejected_action,
        resource=kind.resource,
        resource_id=str(partner.id),
        actor=caller,
        context=context,
        metadata={"name": partner.name, "reason": reason},
    )
    db.commit()
    db.refresh(partner)
    return partner


# -- Event links --------------------------------------------------------------


@dataclass(frozen=True)
class LinkResult:
    link: Any
    existed: bool


def add_to_event(
    db: Session,
    kind: PartnerKind,
    caller: Caller,
    *,
    event_id: uuid.UUID,
    partner_id: uuid.UUID,
    proposed_budget: float | None = None,
    notes: str | None = None,
) -> LinkResult:
    """Attach a listing to an event as an ``inquiry``.

    Linking the same pair twice returns the existing link unchanged.
    """
    ensure_active(caller)
    event = get_owned_event(db, caller, event_id)
    partner = get_partner(db, kind, partner_id)
    if partner is None:
        raise NotFoundError(kind.label)
    if proposed_budget is not None and proposed_budget < 0:
        raise ValidationError("Proposed budget cannot be negative")

    link_fk = getattr(kind.link_model, kind.link_fk)
    existing = (
        db.query(kind.link_model)
        .filter(kind.link_model.event_id == event.id, link_fk == partner.id)
        .first()
    )
    if existing is not None:
        return LinkResult(link=existing, existed=True)

    link = kind.link_model(
        event_id=event.id,
        status=kind.link_statuses.inquiry,
        proposed_budget=proposed_budget,
        notes=notes,
        **{kind.link_fk: partner.id},
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return LinkResult(link=link, existed=False)


def _get_owned_link(db: Session, kind: PartnerKind, caller: Caller, link_id: uuid.UUID):
    link = db.query(kind.link_model).filter(kind.link_model.id == link_id).first()
    if link is None:
        raise NotFoundError(f"{kind.label} relationship")
    ensure_event_owner(caller, link.event)
    return link


def update_link_status(
    db: Session,
    kind: PartnerKind,
    caller: Caller,
    link_id: uuid.UUID,
    *,
    status: str,
    final_budget: float | None = None,
    notes: str | None = None,
):
    ensure_active(caller)
    link = _get_owned_link(db, kind, caller, link_id)
    try:
        status = kind.link_statuses(status).value
    except ValueError:
        raise ValidationError(f"Invalid status: {status}") from None
    if final_budget is not None and final_budget < 0:
        raise ValidationError("Final budget cannot be negative")

    link.status = status
    if final_budget is not None:
        link.final_budget = final_budget
    if notes is not None:
        link.notes = notes
    db.commit()
    db.refresh(link)
    return link


def remove_from_event(db: Session, kind: PartnerKind, caller: Caller, link_id: uuid.UUID) -> None:
    ensure_active(caller)
    link = _get_owned_link(db, kind, caller, link_id)
    db.delete(link)
    db.commit()


def list_for_event(db: Session, kind: PartnerKind, caller: Caller, event_id: uuid.UUID) -> list:
    event = get_owned_event(db, caller, event_id)
    return (
        db.query(kind.link_model)
        .filter(kind.link_model.event_id == event.id)
        .order_by(kind.link_model.created_at.asc())
        .all()
    )
