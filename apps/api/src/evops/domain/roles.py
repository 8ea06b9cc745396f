"""Role hierarchy and the capability checks every service goes through."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from evops.core.errors import ErrorCode, ForbiddenError, NotFoundError
from evops.domain.enums import Role, UserStatus

ROLE_HIERARCHY: dict[str, int] = {
    Role.superadmin: 3,
    Role.admin: 2,
    Role.organizer: 1,
}

DEFAULT_ROLE_LEVEL = 1

ADMIN_ROLES = frozenset({Role.admin, Role.superadmin})


def role_level(role: str | None) -> int:
    return ROLE_HIERARCHY.get(role or Role.organizer, DEFAULT_ROLE_LEVEL)


def is_admin_role(role: str | None) -> bool:
    return role in ADMIN_ROLES


def has_role_privilege(role: str | None, required_role: str) -> bool:
    return role_level(role) >= role_level(required_role)


@dataclass(frozen=True)
class Caller:
    """The authenticated principal a request acts as."""

    id: uuid.UUID
    email: str
    role: str | None = Role.organizer
    status: str = UserStatus.active

    @classmethod
    def from_user(cls, user) -> Caller:
        return cls(id=user.id, email=user.email, role=user.role, status=user.status)

    @property
    def is_admin(self) -> bool:
        return is_admin_role(self.role)

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.superadmin

    @property
    def is_suspended(self) -> bool:
        return self.status == UserStatus.suspended


def require_admin(caller: Caller | None) -> Caller:
    if caller is None or not caller.is_admin:
        raise ForbiddenError("Admin access required")
    return ensure_active(caller)


def ensure_active(caller: Caller) -> Caller:
    if caller.is_suspended:
        raise ForbiddenError("Account suspended", code=ErrorCode.ACCOUNT_SUSPENDED)
    return caller


def is_event_owner(caller: Caller | None, event) -> bool:
    return caller is not None and event is not None and event.organizer_id == caller.id


def ensure_event_owner(caller: Caller, event):
    """Return ``event`` if ``caller`` organizes it, otherwise raise."""
    if event is None:
        raise NotFoundError("Event")
    if not is_event_owner(caller, event):
        raise ForbiddenError("Not authorized to modify this event")
    return event
