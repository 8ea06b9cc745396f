"""API keys for server-to-server access.

A key acts for the user who created it, limited to the scopes it was issued
with. The plain key is returned once at creation; only its SHA-256 digest and a
short display prefix are stored.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import string
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from evops.core import clock
from evops.core.client_context import RequestContext
from evops.core.clock import as_utc, utcnow
from evops.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    UnauthorizedError,
    ValidationError,
)
from evops.db.models.api_key import ApiKey
from evops.db.models.user import User
from evops.domain.enums import (
    ApiKeyEnvironment,
    ApiKeyStatus,
    AuditAction,
    AuditResource,
    AuditStatus,
    RateLimitType,
)
from evops.domain.roles import Caller, ensure_active, require_admin
from evops.services import audit_service, rate_limit_service
from evops.services.rate_limit_service import RateLimitRule

logger = logging.getLogger(__name__)

# oe_{env}_{32 alphanumerics}
KEY_PREFIXES = {
    ApiKeyEnvironment.live: "oe_live_",
    ApiKeyEnvironment.test: "oe_test_",
}
KEY_ALPHABET = string.ascii_letters + string.digits
KEY_RANDOM_LENGTH = 32
KEY_PREFIX_DISPLAY_LENGTH = 16
NAME_MAX = 100

DEFAULT_RATE_LIMIT = 1000
RATE_LIMIT_WINDOW_MS = clock.HOUR_MS

API_PERMISSIONS = frozenset(
    {
        "events:read",
        "events:write",
        "events:delete",
        "vendors:read",
        "sponsors:read",
        "budget:read",
        "budget:write",
        "profile:read",
        "profile:write",
        "*",
    }
)


def generate_key(environment: str = ApiKeyEnvironment.live) -> str:
    random_part = "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_RANDOM_LENGTH))
    return KEY_PREFIXES[environment] + random_part


def hash_key(raw: str) -> str:
    return hashlib.sha256(raw.encode()).hexdigest()


def display_prefix(raw: str) -> str:
    return raw[:KEY_PREFIX_DISPLAY_LENGTH]


def has_permission(permissions, required: str) -> bool:
    """``*`` grants everything; ``events:*`` grants every ``events:`` scope."""
    for perm in permissions:
        if perm == "*" or perm == required:
            return True
        if perm.endswith(":*") and required.startswith(perm[:-1]):
            return True
    return False


def _check_permissions(permissions: list[str]) -> list[str]:
    if not permissions:
        raise ValidationError("At least one permission is required")
    unknown = [
        p
        for p in permissions
        if p not in API_PERMISSIONS
        and not (p.endswith(":*") and any(a.startswith(p[:-1]) for a in API_PERMISSIONS))
    ]
    if unknown:
        raise ValidationError("Unknown permissions", details=unknown)
    return list(dict.fromkeys(permissions))


def extract_api_key(x_api_key: str | None, authorization: str | None) -> str | None:
    """Key from ``X-API-Key``, else from ``Authorization: Bearer oe_...``."""
    if x_api_key and x_api_key.startswith("oe_"):
        return x_api_key
    if authorization and authorization.startswith("Bearer oe_"):
        return authorization[len("Bearer "):]
    return None


# -- Lifecycle ----------------------------------------------------------------


def create_key(
    db: Session,
    caller: Caller,
    *,
    name: str,
    permissions: list[str],
    description: str | None = None,
    environment: str = ApiKeyEnvironment.live,
    expires_at: datetime | None = None,
    rate_limit: int | None = None,
    context: RequestContext | None = None,
) -> tuple[ApiKey, str]:
    """Issue a key for ``caller``. Returns the row and the plain key."""
    ensure_active(caller)
    name = (name or "").strip()
    if not name:
        raise ValidationError("API key name is required")
    if len(name) > NAME_MAX:
        raise ValidationError(f"API key name must be {NAME_MAX} characters or less")
    permissions = _check_permissions(permissions)
    if rate_limit is not None and rate_limit < 1:
        raise ValidationError("Rate limit must be at least 1")
    try:
        environment = ApiKeyEnvironment(environment)
    except ValueError:
        raise ValidationError(f"Invalid environment: {environment}") from None
    if expires_at is not None and as_utc(expires_at) <= utcnow():
        raise ValidationError("Expiry must be in the future")

    raw = generate_key(environment)
    key = ApiKey(
        user_id=caller.id,
        name=name,
        description=description.strip() if description else None,
        key_prefix=display_prefix(raw),
        key_hash=hash_key(raw),
        permissions=permissions,
        environment=environment,
        rate_limit=rate_limit,
        status=ApiKeyStatus.active,
        expires_at=expires_at,
        total_requests=0,
    )
    db.add(key)
    db.flush()

    audit_service.log_action(
        db,
        action=AuditAction.api_key_created,
        resource=AuditResource.api_key,
        resource_id=str(key.id),
        actor=caller,
        context=context,
        metadata={"name": name, "permissions": permissions, "environment": environment},
    )
    db.commit()
    db.refresh(key)
    logger.info("api key created: id=%s prefix=%s by=%s", key.id, key.key_prefix, caller.id)
    return key, raw


def list_keys(db: Session, caller: Caller) -> list[ApiKey]:
    return (
        db.query(ApiKey)
        .filter(ApiKey.user_id == caller.id)
        .order_by(ApiKey.created_at.desc())
        .all()
    )


def list_all_keys(
    db: Session,
    caller: Caller | None,
    *,
    user_id: uuid.UUID | None = None,
    status: str | None = None,
    limit: int = 100,
) -> list[ApiKey]:
    require_admin(caller)
    q = db.query(ApiKey)
    if user_id:
        q = q.filter(ApiKey.user_id == user_id)
    if status:
        q = q.filter(ApiKey.status == status)
    return q.order_by(ApiKey.created_at.desc()).limit(limit).all()


def get_key(db: Session, caller: Caller, key_id: uuid.UUID) -> ApiKey:
    """The caller's own key; admins can reach any key."""
    key = db.query(ApiKey).filter(ApiKey.id == key_id).first()
    if key is None or (key.user_id != caller.id and not caller.is_admin):
        raise NotFoundError("API key")
    return key


def revoke_key(
    db: Session,
    caller: Caller,
    key_id: uuid.UUID,
    *,
    context: RequestContext | None = None,
) -> ApiKey:
    ensure_active(caller)
    key = get_key(db, caller, key_id)
    if key.status == ApiKeyStatus.revoked:
        raise ConflictError("API key is already revoked")

    key.status = ApiKeyStatus.revoked
    key.revoked_at = utcnow()
    audit_service.log_action(
        db,
        action=AuditAction.api_key_revoked,
        resource=AuditResource.api_key,
        resource_id=str(key.id),
        actor=caller,
        context=context,
        metadata={"name": key.name, "owner_id": str(key.user_id)},
    )
    db.commit()
    db.refresh(key)
    logger.info("api key revoked: id=%s by=%s", key.id, caller.id)
    return key


# -- Authentication -----------------------------------------------------------


@dataclass(frozen=True)
class ApiKeyAuth:
    key_id: uuid.UUID
    caller: Caller
    permissions: tuple[str, ...]

    def require(self, permission: str) -> Caller:
        if not has_permission(self.permissions, permission):
            raise ForbiddenError(f"This API key does not have the '{permission}' permission")
        return self.caller


def _find_key(db: Session, raw: str) -> ApiKey | None:
    digest = hash_key(raw)
    candidates = db.query(ApiKey).filter(ApiKey.key_prefix == display_prefix(raw)).all()
    for key in candidates:
        if hmac.compare_digest(key.key_hash, digest):
            return key
    return None


def authenticate(
    db: Session, raw: str, *, context: RequestContext | None = None
) -> ApiKeyAuth:
    """Resolve a plain key to its owner and count the request against its quota.

    Every accepted request is audit-logged as ``api_request``; one over the
    quota is logged as ``rate_limited`` and refused with 429.
    """
    if not raw.startswith(tuple(KEY_PREFIXES.values())):
        raise UnauthorizedError("Invalid API key format")

    key = _find_key(db, raw)
    if (
        key is None
        or key.status != ApiKeyStatus.active
        or (key.expires_at is not None and as_utc(key.expires_at) <= utcnow())
    ):
        raise UnauthorizedError("Invalid or expired API key")

    user = db.query(User).filter(User.id == key.user_id).first()
    if user is None or not user.is_active:
        raise UnauthorizedError("Invalid or expired API key")
    caller = ensure_active(Caller.from_user(user))

    rule = RateLimitRule(
        window_ms=RATE_LIMIT_WINDOW_MS, max_requests=key.rate_limit or DEFAULT_RATE_LIMIT
    )
    result = rate_limit_service.check_and_increment(
        db, f"key:{key.id}", RateLimitType.api_key, rule=rule
    )
    if not result.allowed:
        audit_service.log_action(
            db,
            action=AuditAction.rate_limited,
            resource=AuditResource.api_key,
            resource_id=str(key.id),
            status=AuditStatus.blocked,
            actor=caller,
            context=context,
            metadata={"limit_type": RateLimitType.api_key, "limit": result.limit},
        )
        db.commit()
        raise RateLimitError(result.retry_after or 1, headers=result.headers())

    key.last_used_at = utcnow()
    key.last_used_ip = context.ip_address if context else None
    key.total_requests = (key.total_requests or 0) + 1
    audit_service.log_action(
        db,
        action=AuditAction.api_request,
        resource=AuditResource.api_key,
        resource_id=str(key.id),
        actor=caller,
        context=context,
    )
    db.commit()
    return ApiKeyAuth(key_id=key.id, caller=caller, permissions=tuple(key.permissions or ()))
