from unittest.mock import patch

import pytest

from evops.core import clock
from evops.core.client_context import RequestContext
from evops.core.errors import ForbiddenError, ValidationError
from evops.db.models.audit_log import AuditLog
from evops.domain.enums import AuditAction, AuditResource, AuditStatus
from evops.services import audit_service

NOW = 1_750_000_000_000


def _log(db, at, action=AuditAction.login, status=AuditStatus.success, **kwargs):
    resource = kwargs.pop("resource", AuditResource.auth)
    with patch("evops.core.clock.now_ms", return_value=at):
        return audit_service.log_action(
            db, action=action, resource=resource, status=status, **kwargs
        )


class TestLogAction:
    def test_records_actor_and_context(self, db, organizer_caller):
        ctx = RequestContext(ip_address="1.2.3.4", user_agent="pytest", endpoint="/x")
        entry = audit_service.log_action(
            db,
            action=AuditAction.event_created,
            resource=AuditResource.event,
            resource_id="abc",
            actor=organizer_caller,
            context=ctx,
            metadata={"title": "Gala"},
        )
        db.commit()

        stored = db.query(AuditLog).filter(AuditLog.id == entry.id).one()
        assert stored.user_id == organizer_caller.id
        assert stored.user_email == organizer_caller.email
        assert stored.ip_address == "1.2.3.4"
        assert stored.user_agent == "pytest"
        assert stored.endpoint == "/x"
        assert stored.details == {"title": "Gala"}
        assert stored.status == AuditStatus.success
        assert stored.created_at > 0

    def test_anonymous_entry(self, db):
        entry = audit_service.log_action(
            db, action=AuditAction.rate_limited, resource=AuditResource.auth,
            status=AuditStatus.blocked,
        )
        assert entry.user_id is None
        assert entry.ip_address is None

    def test_unknown_action_rejected(self, db):
        with pytest.raises(ValidationError):
            audit_service.log_action(db, action="teleported", resource=AuditResource.user)

    def test_unknown_resource_rejected(self, db):
        with pytest.raises(ValidationError):
            audit_service.log_action(db, action=AuditAction.login, resource="spaceship")

    def test_unknown_status_rejected(self, db):
        with pytest.raises(ValidationError):
            audit_service.log_action(
                db, action=AuditAction.login, resource=AuditResource.auth, status="maybe"
            )


class TestQueries:
    def test_by_user_newest_first(self, db, organizer):
        for i in range(3):
            _log(db, NOW + i, user_id=organizer.id)
        _log(db, NOW + 10)
        db.commit()

        logs = audit_service.get_by_user(db, organizer.id)
        assert [log.created_at for log in logs] == [NOW + 2, NOW + 1, NOW]

    def test_by_user_limit(self, db, organizer):
        for i in range(5):
            _log(db, NOW + i, user_id=organizer.id)
        db.commit()
        assert len(audit_service.get_by_user(db, organizer.id, limit=2)) == 2

    def test_by_action_start_date_inclusive(self, db):
        _log(db, NOW - 1, action=AuditAction.signup, resource=AuditResource.user)
        _log(db, NOW, action=AuditAction.signup, resource=AuditResource.user)
        _log(db, NOW + 1, action=AuditAction.signup, resource=AuditResource.user)
        _log(db, NOW + 2, action=AuditAction.login)
        db.commit()

        logs = audit_service.get_by_action(db, AuditAction.signup, start_date=NOW)
        assert [log.created_at for log in logs] == [NOW + 1, NOW]

    def test_by_resource(self, db):
        _log(db, NOW, action=AuditAction.event_created, resource=AuditResource.event,
             resource_id="e1")
        _log(db, NOW + 1, action=AuditAction.event_updated, resource=AuditResource.event,
             resource_id="e2")
        db.commit()

        assert len(audit_service.get_by_resource(db, AuditResource.event)) == 2
        only = audit_service.get_by_resource(db, AuditResource.event, resource_id="e1")
        assert [log.resource_id for log in only] == ["e1"]

    def test_security_events_window(self, db):
        _log(db, NOW - 25 * clock.HOUR_MS, status=AuditStatus.failure)
        _log(db, NOW - clock.HOUR_MS, status=AuditStatus.failure)
        _log(db, NOW - clock.HOUR_MS, status=AuditStatus.blocked)
        _log(db, NOW - clock.HOUR_MS, status=AuditStatus.success)
        db.commit()

        with patch("evops.core.clock.now_ms", return_value=NOW):
            logs = audit_service.get_security_events(db)
        assert len(logs) == 2
        assert {log.status for log in logs} == {AuditStatus.failure, AuditStatus.blocked}

    def test_security_events_zero_hours_back(self, db):
        _log(db, NOW - 1, status=AuditStatus.failure)
        _log(db, NOW, status=AuditStatus.failure)
        db.commit()

        with patch("evops.core.clock.now_ms", return_value=NOW):
            logs = audit_service.get_security_events(db, hours_back=0)
        assert [log.created_at for log in logs] == [NOW]


class TestAdminQueries:
    def test_non_admin_forbidden(self, db, organizer_caller):
        with pytest.raises(ForbiddenError):
            audit_service.list_logs(db, organizer_caller)
        with pytest.raises(ForbiddenError):
            audit_service.get_stats(db, organizer_caller)
        with pytest.raises(ForbiddenError):
            audit_service.get_security_events_admin(db, organizer_caller)

    def test_anonymous_forbidden(self, db):
        with pytest.raises(ForbiddenError):
            audit_service.list_logs(db, None)

    def test_list_filters(self, db, admin_caller):
        _log(db, NOW, status=AuditStatus.failure, action=AuditAction.login_failed)
        _log(db, NOW + 1)
        _log(db, NOW + 2, status=AuditStatus.failure, action=AuditAction.login_failed)
        db.commit()

        logs = audit_service.list_logs(db, admin_caller, status=AuditStatus.failure)
        assert [log.created_at for log in logs] == [NOW + 2, NOW]

        logs = audit_service.list_logs(db, admin_caller, start_date=NOW + 1, end_date=NOW + 1)
        assert [log.created_at for log in logs] == [NOW + 1]

    def test_list_scans_only_recent_window(self, db, admin_caller):
        # Two matches sit behind four newer non-matching rows; with limit=2
        # only the newest four rows are read, so nothing comes back.
        _log(db, NOW, action=AuditAction.signup, resource=AuditResource.user)
        _log(db, NOW + 1, action=AuditAction.signup, resource=AuditResource.user)
        for i in range(4):
            _log(db, NOW + 10 + i)
        db.commit()

        assert audit_service.list_logs(db, admin_caller, limit=2, action=AuditAction.signup) == []
        logs = audit_service.list_logs(db, admin_caller, limit=3, action=AuditAction.signup)
        assert len(logs) == 2

    def test_stats(self, db, admin_caller):
        _log(db, NOW - clock.HOUR_MS)
        _log(db, NOW - clock.HOUR_MS, status=AuditStatus.failure, action=AuditAction.login_failed)
        _log(db, NOW - clock.HOUR_MS, status=AuditStatus.blocked,
             action=AuditAction.rate_limited)
        _log(db, NOW - 48 * clock.HOUR_MS)
        db.commit()

        with patch("evops.core.clock.now_ms", return_value=NOW):
            stats = audit_service.get_stats(db, admin_caller)
        assert stats["total"] == 3
        assert stats["success"] == 1
        assert stats["failure"] == 1
        assert stats["blocked"] == 1
        assert stats["by_action"] == {"login": 1, "login_failed": 1, "rate_limited": 1}
        assert stats["by_resource"] == {"auth": 3}


class TestCleanup:
    def test_deletes_only_expired(self, db):
        _log(db, NOW - 91 * clock.DAY_MS)
        _log(db, NOW - 89 * clock.DAY_MS)
        db.commit()

        with patch("evops.core.clock.now_ms", return_value=NOW):
            result = audit_service.cleanup_old_logs(db, days_to_keep=90)
        assert result == {"deleted": 1}
        assert db.query(AuditLog).count() == 1

    def test_batches(self, db):
        for i in range(5):
            _log(db, NOW - 100 * clock.DAY_MS + i)
        db.commit()

        with patch("evops.core.clock.now_ms", return_value=NOW):
            assert audit_service.cleanup_old_logs(db, days_to_keep=90, batch_size=2) == {
                "deleted": 2
            }
            assert audit_service.cleanup_old_logs(db, days_to_keep=90, batch_size=2) == {
                "deleted": 2
            }
            assert audit_service.cleanup_old_logs(db, days_to_keep=90, batch_size=2) == {
                "deleted": 1
            }
            assert audit_service.cleanup_old_logs(db, days_to_keep=90, batch_size=2) == {
                "deleted": 0
            }

    @pytest.mark.parametrize("days", [0, -1])
    def test_rejects_window_that_reaches_now(self, db, days):
        _log(db, NOW - clock.DAY_MS)
        db.commit()
        with patch("evops.core.clock.now_ms", return_value=NOW):
            with pytest.raises(ValidationError):
                audit_service.cleanup_old_logs(db, days_to_keep=days)
        assert db.query(AuditLog).count() == 1

    def test_admin_purge_is_recorded(self, db, admin_caller):
        _log(db, NOW - 91 * clock.DAY_MS)
        db.commit()

        with patch("evops.core.clock.now_ms", return_value=NOW):
            result = audit_service.cleanup_old_logs(db, days_to_keep=90, actor=admin_caller)
        assert result == {"deleted": 1}
        entry = db.query(AuditLog).one()
        assert entry.action == AuditAction.admin_action
        assert entry.resource == AuditResource.settings
        assert entry.user_id == admin_caller.id
        assert entry.details == {"operation": "audit_cleanup", "days_to_keep": 90, "deleted": 1}

    def test_purge_requires_admin(self, db, organizer_caller):
        with pytest.raises(ForbiddenError):
            audit_service.cleanup_old_logs(db, days_to_keep=90, actor=organizer_caller)
