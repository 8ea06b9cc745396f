import uuid
from types import SimpleNamespace

import pytest

from evops.core.errors import ErrorCode, ForbiddenError, NotFoundError
from evops.domain.enums import Role, UserStatus
from evops.domain.roles import (
    Caller,
    ensure_active,
    ensure_event_owner,
    has_role_privilege,
    is_admin_role,
    require_admin,
    role_level,
)


def _caller(role=Role.organizer, status=UserStatus.active):
    return Caller(id=uuid.uuid4(), email="x@test.local", role=role, status=status)


class TestHierarchy:
    def test_levels(self):
        assert role_level(Role.superadmin) > role_level(Role.admin) > role_level(Role.organizer)

    def test_unknown_and_missing_roles_rank_as_organizer(self):
        assert role_level(None) == role_level(Role.organizer)
        assert role_level("wizard") == role_level(Role.organizer)

    def test_privilege_is_inclusive(self):
        assert has_role_privilege(Role.admin, Role.admin)
        assert has_role_privilege(Role.superadmin, Role.admin)
        assert not has_role_privilege(Role.organizer, Role.admin)
        assert not has_role_privilege(Role.admin, Role.superadmin)

    def test_admin_roles(self):
        assert is_admin_role(Role.admin)
        assert is_admin_role(Role.superadmin)
        assert not is_admin_role(Role.organizer)
        assert not is_admin_role(None)


class TestGates:
    def test_require_admin_accepts_admins(self):
        caller = _caller(Role.superadmin)
        assert require_admin(caller) is caller

    def test_require_admin_rejects_organizer(self):
        with pytest.raises(ForbiddenError):
            require_admin(_caller())

    def test_require_admin_rejects_anonymous(self):
        with pytest.raises(ForbiddenError):
            require_admin(None)

    def test_suspended_caller_blocked(self):
        with pytest.raises(ForbiddenError) as exc:
            ensure_active(_caller(status=UserStatus.suspended))
        assert exc.value.code == ErrorCode.ACCOUNT_SUSPENDED

    def test_event_owner(self):
        caller = _caller()
        event = SimpleNamespace(organizer_id=caller.id)
        assert ensure_event_owner(caller, event) is event

    def test_event_not_owned(self):
        event = SimpleNamespace(organizer_id=uuid.uuid4())
        with pytest.raises(ForbiddenError):
            ensure_event_owner(_caller(), event)

    def test_admin_does_not_bypass_ownership(self):
        event = SimpleNamespace(organizer_id=uuid.uuid4())
        with pytest.raises(ForbiddenError):
            ensure_event_owner(_caller(Role.admin), event)

    def test_missing_event(self):
        with pytest.raises(NotFoundError):
            ensure_event_owner(_caller(), None)
