from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from evops.api.v1.api_keys import api_key_to_dict
from evops.core.security import AdminUser, RequestCtx, enforce_rate_limit
from evops.db.session import get_db
from evops.domain.enums import ApiKeyStatus, RateLimitType, ReviewStatus
from evops.services import (
    api_key_service,
    audit_service,
    partner_service,
    rate_limit_service,
    user_service,
)
from evops.services.partner_service import SPONSORS, VENDORS

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(enforce_rate_limit(RateLimitType.admin))],
)

DB = Annotated[Session, Depends(get_db)]


# -- Schemas ------------------------------------------------------------------


class RoleChange(BaseModel):
    role: str


class SuspendRequest(BaseModel):
    reason: str


class ApproveRequest(BaseModel):
    notes: str | None = None


class RejectRequest(BaseModel):
    reason: str
    notes: str | None = None


# -- Helpers ------------------------------------------------------------------


def _user_to_dict(u):
    return {
        "id": str(u.id),
        "email": u.email,
        "full_name": u.full_name,
        "role": u.role,
        "status": u.status,
        "suspended_at": u.suspended_at.isoformat() if u.suspended_at else None,
        "suspended_reason": u.suspended_reason,
    }


def _review_to_dict(p, group_field: str):
    return {
        "id": str(p.id),
        "name": p.name,
        group_field: getattr(p, group_field),
        "status": p.status,
        "verified": p.verified,
        "submitted_by": str(p.submitted_by) if p.submitted_by else None,
        "reviewed_by": str(p.reviewed_by) if p.reviewed_by else None,
        "reviewed_at": p.reviewed_at.isoformat() if p.reviewed_at else None,
        "review_notes": p.review_notes,
        "rejection_reason": p.rejection_reason,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }


# -- Users --------------------------------------------------------------------


@router.get("/users")
def list_users(
    user: AdminUser,
    db: DB,
    role: str | None = None,
    status: str | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
):
    users = user_service.list_users(db, user, role=role, status=status, limit=limit)
    return [_user_to_dict(u) for u in users]


@router.patch("/users/{user_id}/role")
def change_role(user_id: uuid.UUID, body: RoleChange, user: AdminUser, ctx: RequestCtx, db: DB):
    target = user_service.change_role(db, user, user_id=user_id, new_role=body.role, context=ctx)
    return _user_to_dict(target)


@router.post("/users/{user_id}/suspend")
def suspend(user_id: uuid.UUID, body: SuspendRequest, user: AdminUser, ctx: RequestCtx, db: DB):
    target = user_service.suspend_user(db, user, user_id=user_id, reason=body.reason, context=ctx)
    return _user_to_dict(target)


@router.post("/users/{user_id}/unsuspend")
def unsuspend(user_id: uuid.UUID, user: AdminUser, ctx: RequestCtx, db: DB):
    target = user_service.unsuspend_user(db, user, user_id=user_id, context=ctx)
    return _user_to_dict(target)


# -- API keys -----------------------------------------------------------------


@router.get("/api-keys")
def list_api_keys(
    user: AdminUser,
    db: DB,
    user_id: uuid.UUID | None = None,
    status: ApiKeyStatus | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
):
    keys = api_key_service.list_all_keys(db, user, user_id=user_id, status=status, limit=limit)
    return [api_key_to_dict(k) for k in keys]


# -- Maintenance --------------------------------------------------------------


@router.post("/audit/cleanup")
def run_audit_cleanup(
    user: AdminUser,
    ctx: RequestCtx,
    db: DB,
    days_to_keep: Annotated[int | None, Query(ge=1)] = None,
):
    """Delete one batch of expired audit entries on demand."""
    return audit_service.cleanup_old_logs(db, days_to_keep=days_to_keep, actor=user, context=ctx)


@router.get("/rate-limits/stats")
def rate_limit_stats(user: AdminUser, db: DB, hours_back: Annotated[float, Query(ge=0)] = 1):
    return rate_limit_service.get_stats(db, user, hours_back=hours_back)


# -- Vendor / sponsor review --------------------------------------------------


def _review_routes(kind: partner_service.PartnerKind, path: str) -> None:
    @router.get(f"/{path}", name=f"list_{path}_for_review")
    def list_for_review(
        user: AdminUser,
        db: DB,
        status: ReviewStatus | None = None,
        group: str | None = None,
        limit: Annotated[int, Query(ge=1, le=500)] = 100,
    ):
        partners = partner_service.list_for_admin(
            db, kind, user, status=status, group=group, limit=limit
        )
        return [_review_to_dict(p, kind.group_field) for p in partners]

    @router.get(f"/{path}/pending-count", name=f"{path}_pending_count")
    def pending(user: AdminUser, db: DB):
        return {"pending": partner_service.pending_count(db, kind, user)}

    @router.post(f"/{path}/{{partner_id}}/approve", name=f"approve_{path}")
    def approve(
        partner_id: uuid.UUID, body: ApproveRequest, user: AdminUser, ctx: RequestCtx, db: DB
    ):
        partner = partner_service.approve(
            db, kind, user, partner_id, notes=body.notes, context=ctx
        )
        return _review_to_dict(partner, kind.group_field)

    @router.post(f"/{path}/{{partner_id}}/reject", name=f"reject_{path}")
    def reject(
        partner_id: uuid.UUID, body: RejectRequest, user: AdminUser, ctx: RequestCtx, db: DB
    ):
        partner = partner_service.reject(
            db, kind, user, partner_id, reason=body.reason, notes=body.notes, context=ctx
        )
        return _review_to_dict(partner, kind.group_field)


_review_routes(VENDORS, "vendors")
_review_routes(SPONSORS, "sponsors")
