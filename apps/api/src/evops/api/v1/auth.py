from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from evops.core.config import settings
from evops.core.security import CurrentUser, RequestCtx, create_access_token, enforce_rate_limit
from evops.db.models.user import User
from evops.db.session import get_db
from evops.domain.enums import RateLimitType
from evops.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])

DB = Annotated[Session, Depends(get_db)]
AuthRateLimit = Depends(enforce_rate_limit(RateLimitType.auth))


class LoginRequest(BaseModel):
    email: str
    password: str


class SignupRequest(BaseModel):
    email: str
    password: str
    full_name: str


class DevTokenRequest(BaseModel):
    email: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


def _user_to_dict(u):
    return {
        "id": str(u.id),
        "email": u.email,
        "full_name": u.full_name,
        "role": u.role,
        "status": u.status,
        "created_at": u.created_at.isoformat() if u.created_at else None,
    }


@router.post("/login", response_model=TokenResponse, dependencies=[AuthRateLimit])
def login(body: LoginRequest, ctx: RequestCtx, db: DB):
    user = auth_service.login(db, email=body.email, password=body.password, context=ctx)
    return TokenResponse(access_token=create_access_token(subject=str(user.id)))


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[AuthRateLimit],
)
def signup(body: SignupRequest, ctx: RequestCtx, db: DB):
    user = auth_service.signup(
        db,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        context=ctx,
    )
    return TokenResponse(access_token=create_access_token(subject=str(user.id)))


@router.post("/dev-token", response_model=TokenResponse)
def dev_token(body: DevTokenRequest, db: DB):
    """Issue a JWT without a password; only available in local/test environments."""
    if settings.APP_ENV not in ("local", "test"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return TokenResponse(access_token=create_access_token(subject=str(user.id)))


@router.get("/me")
def me(user: CurrentUser, db: DB):
    record = db.query(User).filter(User.id == user.id).first()
    return _user_to_dict(record)
