"""Vendor and sponsor directory endpoints plus their event links.

Both directories expose the same routes, so one builder registers them for
each kind; only the create schema and the grouping field differ.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from evops.core.security import CurrentUser, OptionalUser, enforce_rate_limit
from evops.db.session import get_db
from evops.domain.enums import RateLimitType
from evops.services import partner_service
from evops.services.partner_service import SPONSORS, VENDORS, PartnerKind

DB = Annotated[Session, Depends(get_db)]


# -- Schemas ------------------------------------------------------------------


class VendorCreate(BaseModel):
    name: str
    category: str
    description: str | None = None
    location: str | None = None
    contact_email: str | None = None
    website: str | None = None


class SponsorCreate(BaseModel):
    name: str
    industry: str
    description: str | None = None
    budget_min: float | None = None
    budget_max: float | None = None
    contact_email: str | None = None
    website: str | None = None


class LinkCreate(BaseModel):
    partner_id: uuid.UUID
    proposed_budget: float | None = None
    notes: str | None = None


class LinkStatusUpdate(BaseModel):
    status: str
    final_budget: float | None = None
    notes: str | None = None


# -- Helpers ------------------------------------------------------------------


def _partner_to_dict(p, kind: PartnerKind):
    out = {
        "id": str(p.id),
        "name": p.name,
        "description": p.description,
        kind.group_field: getattr(p, kind.group_field),
        "contact_email": p.contact_email,
        "website": p.website,
        "status": p.status,
        "verified": p.verified,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }
    if kind is VENDORS:
        out["location"] = p.location
    else:
        out["budget_min"] = p.budget_min
        out["budget_max"] = p.budget_max
    return out


def _link_to_dict(link, kind: PartnerKind):
    partner = getattr(link, kind.label.lower())
    return {
        "id": str(link.id),
        "event_id": str(link.event_id),
        kind.link_fk: str(getattr(link, kind.link_fk)),
        "status": link.status,
        "proposed_budget": link.proposed_budget,
        "final_budget": link.final_budget,
        "notes": link.notes,
        kind.label.lower(): {
            "id": str(partner.id),
            "name": partner.name,
            kind.group_field: getattr(partner, kind.group_field),
        },
        "created_at": link.created_at.isoformat() if link.created_at else None,
    }


def build_router(kind: PartnerKind, path: str, groups_path: str, create_schema) -> APIRouter:
    router = APIRouter(
        tags=[path],
        dependencies=[Depends(enforce_rate_limit(RateLimitType.api))],
    )
    link_path = f"event-{path}"

    @router.get(f"/{path}", name=f"list_{path}")
    def list_approved(db: DB, group: str | None = None, search: str | None = None):
        partners = partner_service.list_approved(db, kind, group=group, search=search)
        return [_partner_to_dict(p, kind) for p in partners]

    @router.get(f"/{path}/{groups_path}", name=f"list_{path}_{groups_path}")
    def list_groups(db: DB):
        return partner_service.list_groups(db, kind)

    @router.get(f"/{path}/{{partner_id}}", name=f"get_{path}")
    def get_by_id(partner_id: uuid.UUID, user: OptionalUser, db: DB):
        partner = partner_service.get_visible_partner(db, kind, user, partner_id)
        return _partner_to_dict(partner, kind)

    @router.post(f"/{path}", name=f"create_{path}", status_code=status.HTTP_201_CREATED)
    def create(body: create_schema, user: CurrentUser, db: DB):
        fields = body.model_dump()
        group = fields.pop(kind.group_field)
        partner = partner_service.create_partner(db, kind, user, group=group, **fields)
        return _partner_to_dict(partner, kind)

    @router.get(f"/events/{{event_id}}/{path}", name=f"list_event_{path}")
    def list_for_event(event_id: uuid.UUID, user: CurrentUser, db: DB):
        links = partner_service.list_for_event(db, kind, user, event_id)
        return [_link_to_dict(link, kind) for link in links]

    @router.post(f"/events/{{event_id}}/{path}", name=f"add_event_{path}")
    def add_to_event(event_id: uuid.UUID, body: LinkCreate, user: CurrentUser, db: DB):
        """Idempotent: linking an already-linked listing returns the existing link."""
        result = partner_service.add_to_event(
            db,
            kind,
            user,
            event_id=event_id,
            partner_id=body.partner_id,
            proposed_budget=body.proposed_budget,
            notes=body.notes,
        )
        return {**_link_to_dict(result.link, kind), "existed": result.existed}

    @router.patch(f"/{link_path}/{{link_id}}", name=f"update_{link_path}")
    def update_link(link_id: uuid.UUID, body: LinkStatusUpdate, user: CurrentUser, db: DB):
        link = partner_service.update_link_status(
            db,
            kind,
            user,
            link_id,
            status=body.status,
            final_budget=body.final_budget,
            notes=body.notes,
        )
        return _link_to_dict(link, kind)

    @router.delete(
        f"/{link_path}/{{link_id}}",
        name=f"delete_{link_path}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    def remove_link(link_id: uuid.UUID, user: CurrentUser, db: DB):
        partner_service.remove_from_event(db, kind, user, link_id)

    return router


vendors_router = build_router(VENDORS, "vendors", "categories", VendorCreate)
sponsors_router = build_router(SPONSORS, "sponsors", "industries", SponsorCreate)
