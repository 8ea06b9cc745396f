from unittest.mock import patch

from evops.workers.celery_app import celery_app
from evops.workers.tasks import cleanup_audit_logs_task


class TestBeatSchedule:
    def test_cleanup_jobs_scheduled(self):
        schedule = celery_app.conf.beat_schedule
        assert schedule["cleanup-audit-logs"]["task"] == "evops.cleanup_audit_logs"
        assert schedule["cleanup-lockout-records"]["task"] == "evops.cleanup_lockout_records"
        assert (
            schedule["cleanup-rate-limit-records"]["task"] == "evops.cleanup_rate_limit_records"
        )


class TestCleanupTask:
    @patch("evops.services.audit_service.cleanup_old_logs", return_value={"deleted": 3})
    @patch("evops.db.session.SessionLocal")
    def test_runs_and_closes_session(self, session_local, cleanup):
        result = cleanup_audit_logs_task(days_to_keep=7)
        assert result == {"deleted": 3}
        session = session_local.return_value
        cleanup.assert_called_once_with(session, days_to_keep=7)
        session.close.assert_called_once()
