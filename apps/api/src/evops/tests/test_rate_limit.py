from unittest.mock import patch

import pytest

from evops.core import clock
from evops.core.config import settings
from evops.core.errors import ForbiddenError
from evops.db.models.audit_log import AuditLog
from evops.db.models.security import RateLimitRecord
from evops.domain.enums import AuditAction, AuditStatus, RateLimitType
from evops.services import rate_limit_service

NOW = 1_750_000_020_000


def _hit(db, identifier, kind, at=NOW):
    with patch("evops.core.clock.now_ms", return_value=at):
        return rate_limit_service.check_and_increment(db, identifier, kind)


class TestRateLimitService:
    def test_counts_down(self, db):
        first = _hit(db, "1.2.3.4", RateLimitType.admin)
        second = _hit(db, "1.2.3.4", RateLimitType.admin)
        assert first.allowed and second.allowed
        assert first.remaining == 29
        assert second.remaining == 28
        assert first.limit == 30

    def test_blocks_at_limit(self, db):
        for _ in range(30):
            assert _hit(db, "1.2.3.4", RateLimitType.admin).allowed
        blocked = _hit(db, "1.2.3.4", RateLimitType.admin)
        assert not blocked.allowed
        assert blocked.remaining == 0
        assert blocked.retry_after >= 1

    def test_blocked_requests_not_counted(self, db):
        for _ in range(32):
            _hit(db, "1.2.3.4", RateLimitType.admin)
        record = db.query(RateLimitRecord).one()
        assert record.request_count == 30

    def test_keys_are_independent(self, db):
        for _ in range(30):
            _hit(db, "1.2.3.4", RateLimitType.admin)
        assert _hit(db, "5.6.7.8", RateLimitType.admin).allowed
        assert _hit(db, "1.2.3.4", RateLimitType.api).allowed

    def test_window_resets(self, db):
        for _ in range(30):
            _hit(db, "1.2.3.4", RateLimitType.admin)
        later = NOW + 2 * clock.MINUTE_MS
        result = _hit(db, "1.2.3.4", RateLimitType.admin, at=later)
        assert result.allowed
        assert result.remaining == 29

    def test_unknown_type_uses_default(self, db):
        assert _hit(db, "1.2.3.4", "webhooks").limit == 100

    def test_check_is_read_only(self, db):
        _hit(db, "1.2.3.4", RateLimitType.auth)
        with patch("evops.core.clock.now_ms", return_value=NOW):
            result = rate_limit_service.check_rate_limit(db, "1.2.3.4", RateLimitType.auth)
        assert result.remaining == 19
        assert db.query(RateLimitRecord).one().request_count == 1

    def test_headers(self, db):
        for _ in range(30):
            _hit(db, "1.2.3.4", RateLimitType.admin)
        headers = _hit(db, "1.2.3.4", RateLimitType.admin).headers()
        assert headers["X-RateLimit-Limit"] == "30"
        assert headers["X-RateLimit-Remaining"] == "0"
        assert "Retry-After" in headers

    def test_cleanup(self, db):
        _hit(db, "old", RateLimitType.api, at=NOW - 2 * clock.HOUR_MS)
        _hit(db, "new", RateLimitType.api)
        db.commit()

        with patch("evops.core.clock.now_ms", return_value=NOW):
            assert rate_limit_service.cleanup_old_records(db) == {"deleted": 1}
        assert db.query(RateLimitRecord).one().identifier == "new"

    def test_row_inserted_concurrently_is_reused(self, db):
        _hit(db, "1.2.3.4", RateLimitType.api)
        db.commit()
        real_get = rate_limit_service._get_record
        reads = []

        def missed_first_read(db, identifier, kind, **kwargs):
            reads.append(identifier)
            return None if len(reads) == 1 else real_get(db, identifier, kind, **kwargs)

        with patch.object(rate_limit_service, "_get_record", side_effect=missed_first_read):
            result = _hit(db, "1.2.3.4", RateLimitType.api)
        db.commit()

        assert len(reads) == 2
        assert result.allowed
        assert result.remaining == 58
        assert db.query(RateLimitRecord).one().request_count == 2

    def test_stats_admin_only(self, db, organizer_caller, admin_caller):
        _hit(db, "1.2.3.4", RateLimitType.api)
        _hit(db, "1.2.3.4", RateLimitType.api)
        _hit(db, "5.6.7.8", RateLimitType.auth)
        db.commit()

        with pytest.raises(ForbiddenError):
            rate_limit_service.get_stats(db, organizer_caller)

        with patch("evops.core.clock.now_ms", return_value=NOW):
            stats = rate_limit_service.get_stats(db, admin_caller)
        assert stats["total_records"] == 2
        assert stats["total_requests"] == 3
        assert stats["by_type"]["api"] == {"count": 1, "requests": 2}
        assert stats["top_clients"][0]["identifier"] == "1.2.3.4"


class TestRateLimitDependency:
    def test_auth_endpoint_returns_429(self, client, db):
        body = {"email": "ghost@test.local", "password": "whatever"}
        for _ in range(20):
            _hit(db, "testclient", RateLimitType.auth, at=clock.now_ms())
        db.commit()

        r = client.post("/api/v1/auth/login", json=body)
        assert r.status_code == 429
        assert r.json()["code"] == "RATE_LIMITED"
        assert r.headers["X-RateLimit-Limit"] == "20"
        assert int(r.headers["Retry-After"]) >= 1

        entry = db.query(AuditLog).filter(AuditLog.action == AuditAction.rate_limited).one()
        assert entry.status == AuditStatus.blocked
        assert entry.details == {"limit_type": "auth", "limit": 20}
        assert entry.ip_address == "testclient"

    def test_disabled(self, client, db):
        for _ in range(20):
            _hit(db, "testclient", RateLimitType.auth, at=clock.now_ms())
        db.commit()

        with patch.object(settings, "RATE_LIMIT_ENABLED", False):
            r = client.post(
                "/api/v1/auth/login", json={"email": "ghost@test.local", "password": "x"}
            )
        assert r.status_code == 401
