import uuid
from datetime import UTC, datetime, timedelta

from jose import jwt

from evops.core.config import settings
from evops.core.security import create_access_token, decode_access_token
from evops.db.models.audit_log import AuditLog
from evops.db.models.user import User
from evops.domain.enums import AuditAction, AuditStatus, UserStatus

LOGIN = "/api/v1/auth/login"
SIGNUP = "/api/v1/auth/signup"
NEW_PASSWORD = "Signup-Pass-2024"


def _actions(db):
    return [log.action for log in db.query(AuditLog).order_by(AuditLog.created_at).all()]


class TestLogin:
    def test_success(self, client, db, organizer, password):
        r = client.post(LOGIN, json={"email": "Organizer@Test.Local", "password": password})
        assert r.status_code == 200
        token = r.json()["access_token"]
        assert decode_access_token(token)["sub"] == str(organizer.id)

        entry = db.query(AuditLog).one()
        assert entry.action == AuditAction.login
        assert entry.user_id == organizer.id
        assert entry.ip_address == "testclient"

    def test_wrong_password(self, client, db, organizer):
        r = client.post(LOGIN, json={"email": organizer.email, "password": "nope"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Incorrect email or password"

        entry = db.query(AuditLog).one()
        assert entry.action == AuditAction.login_failed
        assert entry.status == AuditStatus.failure
        assert entry.details == {"remaining_attempts": 4}

    def test_audit_records_user_agent(self, client, db, organizer):
        client.post(
            LOGIN,
            json={"email": organizer.email, "password": "nope"},
            headers={"User-Agent": "curl/8.0"},
        )
        assert db.query(AuditLog).one().user_agent == "curl/8.0"

    def test_empty_user_agent_stored_as_null(self, client, db, organizer):
        client.post(
            LOGIN,
            json={"email": organizer.email, "password": "nope"},
            headers={"User-Agent": ""},
        )
        assert db.query(AuditLog).one().user_agent is None

    def test_unknown_email_same_error(self, client):
        r = client.post(LOGIN, json={"email": "ghost@test.local", "password": "nope"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Incorrect email or password"

    def test_lockout_after_repeated_failures(self, client, db, organizer, password):
        for _ in range(5):
            client.post(LOGIN, json={"email": organizer.email, "password": "nope"})

        r = client.post(LOGIN, json={"email": organizer.email, "password": password})
        assert r.status_code == 423
        body = r.json()
        assert body["code"] == "ACCOUNT_LOCKED"
        assert "Try again in 1 minute" in body["detail"]
        assert body["details"]["locked_until"] > 0
        assert _actions(db)[-1] == AuditAction.account_locked

    def test_success_clears_failures(self, client, db, organizer, password):
        for _ in range(3):
            client.post(LOGIN, json={"email": organizer.email, "password": "nope"})
        client.post(LOGIN, json={"email": organizer.email, "password": password})

        r = client.post(LOGIN, json={"email": organizer.email, "password": "nope"})
        assert r.status_code == 401
        last = db.query(AuditLog).order_by(AuditLog.created_at.desc()).first()
        assert last.details == {"remaining_attempts": 4}

    def test_suspended_user(self, client, db, user_factory, password):
        user_factory("suspended@test.local", status=UserStatus.suspended)
        r = client.post(LOGIN, json={"email": "suspended@test.local", "password": password})
        assert r.status_code == 403
        assert r.json()["code"] == "ACCOUNT_SUSPENDED"

        entry = db.query(AuditLog).one()
        assert entry.action == AuditAction.login_failed
        assert entry.status == AuditStatus.blocked


class TestSignup:
    def test_creates_organizer(self, client, db):
        r = client.post(
            SIGNUP,
            json={"email": "New@Test.Local", "password": NEW_PASSWORD, "full_name": " New Person "},
        )
        assert r.status_code == 201
        user = db.query(User).filter(User.email == "new@test.local").one()
        assert user.role == "organizer"
        assert user.full_name == "New Person"
        assert _actions(db) == [AuditAction.signup]

    def test_weak_password(self, client):
        r = client.post(
            SIGNUP, json={"email": "new@test.local", "password": "weak", "full_name": "New"}
        )
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_INPUT"
        assert "At least 12 characters" in r.json()["details"]

    def test_invalid_email(self, client):
        r = client.post(
            SIGNUP, json={"email": "not-an-email", "password": NEW_PASSWORD, "full_name": "New"}
        )
        assert r.status_code == 400

    def test_blank_name(self, client):
        r = client.post(
            SIGNUP, json={"email": "new@test.local", "password": NEW_PASSWORD, "full_name": "  "}
        )
        assert r.status_code == 400
        assert r.json()["code"] == "MISSING_REQUIRED_FIELD"

    def test_duplicate_email(self, client, organizer):
        r = client.post(
            SIGNUP, json={"email": organizer.email, "password": NEW_PASSWORD, "full_name": "Dup"}
        )
        assert r.status_code == 409
        assert r.json()["code"] == "ALREADY_EXISTS"


class TestTokens:
    def test_dev_token(self, client, organizer):
        r = client.post("/api/v1/auth/dev-token", json={"email": organizer.email})
        assert r.status_code == 200
        assert decode_access_token(r.json()["access_token"])["sub"] == str(organizer.id)

    def test_dev_token_unknown_user(self, client):
        r = client.post("/api/v1/auth/dev-token", json={"email": "ghost@test.local"})
        assert r.status_code == 404

    def test_me(self, client, organizer, organizer_header):
        r = client.get("/api/v1/auth/me", headers=organizer_header)
        assert r.status_code == 200
        assert r.json()["email"] == organizer.email
        assert r.json()["role"] == "organizer"

    def test_me_without_token(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_garbage_token(self, client):
        r = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert r.status_code == 401

    def test_expired_token(self, client, organizer):
        past = datetime.now(UTC) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": str(organizer.id), "iat": int(past.timestamp()),
             "exp": int((past + timedelta(minutes=5)).timestamp())},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALG,
        )
        r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401

    def test_token_for_deleted_user(self, client):
        token = create_access_token(subject=str(uuid.uuid4()))
        r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401
