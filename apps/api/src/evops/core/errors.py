"""Application error types and their HTTP rendering.

Services raise these instead of ``HTTPException`` so the same rules apply when
they are called from Celery tasks or scripts. ``install_error_handlers`` turns
them into ``{"detail": ..., "code": ...}`` JSON bodies.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class ErrorCode(StrEnum):
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    ACCOUNT_SUSPENDED = "ACCOUNT_SUSPENDED"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        *,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        self.headers = headers


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, ErrorCode.UNAUTHORIZED, status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Access denied", code: str = ErrorCode.FORBIDDEN) -> None:
        super().__init__(message, code, status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found", ErrorCode.NOT_FOUND, status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    def __init__(self, message: str, code: str = ErrorCode.CONFLICT) -> None:
        super().__init__(message, code, status.HTTP_409_CONFLICT)


class ValidationError(AppError):
    def __init__(
        self, message: str, code: str = ErrorCode.INVALID_INPUT, details: Any = None
    ) -> None:
        super().__init__(message, code, status.HTTP_400_BAD_REQUEST, details=details)


class AccountLockedError(AppError):
    def __init__(self, message: str, locked_until: int) -> None:
        super().__init__(
            message,
            ErrorCode.ACCOUNT_LOCKED,
            status.HTTP_423_LOCKED,
            details={"locked_until": locked_until},
        )


class RateLimitError(AppError):
    def __init__(self, retry_after: int, headers: dict[str, str] | None = None) -> None:
        super().__init__(
            f"Too many requests. Please try again in {retry_after} seconds.",
            ErrorCode.RATE_LIMITED,
            status.HTTP_429_TOO_MANY_REQUESTS,
            details={"retry_after": retry_after},
            headers=headers,
        )
        self.retry_after = retry_after


def format_error(exc: AppError) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": exc.message, "code": str(exc.code)}
    if exc.details is not None:
        body["details"] = exc.details
    return body


async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=format_error(exc),
        headers=exc.headers,
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
