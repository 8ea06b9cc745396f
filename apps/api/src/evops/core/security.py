from __future__ import annotations

import uuid as _uuid
from datetime import UTC, datetime, timedelta
from typing import Annotated

import bcrypt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from evops.core.client_context import RequestContext, request_context
from evops.core.config import settings
from evops.core.errors import RateLimitError, UnauthorizedError
from evops.db.session import get_db
from evops.domain.enums import AuditAction, AuditResource, AuditStatus
from evops.domain.roles import Caller, require_admin

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)
api_key_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def create_access_token(subject: str, extra: dict | None = None) -> str:
    now = datetime.now(UTC)
    exp = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": subject, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALG],
        options={"verify_exp": True},
    )


_credentials_exc = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def _caller_from_token(db: Session, token: str) -> Caller:
    from evops.db.models.user import User

    try:
        payload = decode_access_token(token)
        raw_sub: str | None = payload.get("sub")
        if raw_sub is None:
            raise _credentials_exc
        user_id = _uuid.UUID(raw_sub)
    except (JWTError, ValueError):
        raise _credentials_exc from None

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise _credentials_exc
    return Caller.from_user(user)


async def require_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> Caller:
    """FastAPI dependency: resolves the calling user from the JWT."""
    return _caller_from_token(db, token)


async def optional_user(
    token: Annotated[str | None, Depends(optional_oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> Caller | None:
    """Like ``require_user`` but anonymous requests get ``None``."""
    if token is None:
        return None
    return _caller_from_token(db, token)


async def require_admin_user(caller: Annotated[Caller, Depends(require_user)]) -> Caller:
    return require_admin(caller)


def enforce_rate_limit(kind: str):
    """Factory that returns a FastAPI dependency counting the request against ``kind``.

    Blocked requests are audit-logged as ``rate_limited`` and answered with 429.
    """

    async def _check(
        db: Annotated[Session, Depends(get_db)],
        ctx: Annotated[RequestContext, Depends(request_context)],
    ) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return

        from evops.services import audit_service, rate_limit_service

        result = rate_limit_service.check_and_increment(db, ctx.client_key, kind)
        if not result.allowed:
            audit_service.log_action(
                db,
                action=AuditAction.rate_limited,
                resource=AuditResource.auth if kind == "auth" else AuditResource.settings,
                status=AuditStatus.blocked,
                context=ctx,
                metadata={"limit_type": kind, "limit": result.limit},
            )
            db.commit()
            raise RateLimitError(result.retry_after or 1, headers=result.headers())
        db.commit()

    return _check


def require_api_key(permission: str):
    """Factory for a dependency that authenticates an API key holding ``permission``.

    The key comes from ``X-API-Key`` or ``Authorization: Bearer oe_...`` and the
    dependency resolves to the key owner as a ``Caller``.
    """

    async def _check(
        db: Annotated[Session, Depends(get_db)],
        ctx: Annotated[RequestContext, Depends(request_context)],
        x_api_key: Annotated[str | None, Depends(api_key_scheme)],
        authorization: Annotated[str | None, Header()] = None,
    ) -> Caller:
        from evops.services import api_key_service

        raw = api_key_service.extract_api_key(x_api_key, authorization)
        if raw is None:
            raise UnauthorizedError(
                "API key required. Provide via X-API-Key header or Authorization: Bearer token."
            )
        auth = api_key_service.authenticate(db, raw, context=ctx)
        return auth.require(permission)

    return _check


CurrentUser = Annotated[Caller, Depends(require_user)]
OptionalUser = Annotated[Caller | None, Depends(optional_user)]
AdminUser = Annotated[Caller, Depends(require_admin_user)]
RequestCtx = Annotated[RequestContext, Depends(request_context)]
