from datetime import UTC, datetime, timedelta

from evops.db.models.audit_log import AuditLog
from evops.db.models.event import Event
from evops.domain.enums import AuditAction, EventStatus, UserStatus

EVENTS = "/api/v1/events"


def _future(days=30):
    return (datetime.now(UTC) + timedelta(days=days)).isoformat()


def _audit_actions(db, event_id):
    logs = db.query(AuditLog).filter(AuditLog.resource_id == str(event_id)).all()
    return sorted(log.action for log in logs)


class TestCreateEvent:
    def test_create(self, client, db, organizer, organizer_header):
        r = client.post(
            EVENTS,
            json={"title": "  Launch Night ", "start_date": _future(), "budget": 2500},
            headers=organizer_header,
        )
        assert r.status_code == 201
        data = r.json()
        assert data["title"] == "Launch Night"
        assert data["status"] == "draft"
        assert data["organizer_id"] == str(organizer.id)
        assert _audit_actions(db, data["id"]) == [AuditAction.event_created]

    def test_requires_auth(self, client):
        r = client.post(EVENTS, json={"title": "x", "start_date": _future()})
        assert r.status_code == 401

    def test_negative_budget(self, client, organizer_header):
        r = client.post(
            EVENTS,
            json={"title": "x", "start_date": _future(), "budget": -5},
            headers=organizer_header,
        )
        assert r.status_code == 400

    def test_end_before_start(self, client, organizer_header):
        r = client.post(
            EVENTS,
            json={"title": "x", "start_date": _future(10), "end_date": _future(5)},
            headers=organizer_header,
        )
        assert r.status_code == 400

    def test_suspended_cannot_create(self, client, user_factory, auth_headers):
        user = user_factory("benched@test.local", status=UserStatus.suspended)
        r = client.post(
            EVENTS, json={"title": "x", "start_date": _future()}, headers=auth_headers(user)
        )
        assert r.status_code == 403
        assert r.json()["code"] == "ACCOUNT_SUSPENDED"


class TestReadEvents:
    def test_list_mine(self, client, organizer, other_organizer, event_factory, organizer_header):
        event_factory(organizer, title="Mine")
        event_factory(other_organizer, title="Theirs")
        r = client.get(EVENTS, headers=organizer_header)
        assert [e["title"] for e in r.json()] == ["Mine"]

    def test_list_by_status(self, client, organizer, event_factory, organizer_header):
        event_factory(organizer, title="Draft")
        event_factory(organizer, title="Live", status=EventStatus.active)
        r = client.get(f"{EVENTS}?status=active", headers=organizer_header)
        assert [e["title"] for e in r.json()] == ["Live"]

    def test_active_event_is_public(self, client, active_event):
        r = client.get(f"{EVENTS}/{active_event.id}")
        assert r.status_code == 200

    def test_draft_hidden_from_others(self, client, event, other_organizer, auth_headers):
        assert client.get(f"{EVENTS}/{event.id}").status_code == 404
        r = client.get(f"{EVENTS}/{event.id}", headers=auth_headers(other_organizer))
        assert r.status_code == 404

    def test_draft_visible_to_owner_and_admin(self, client, event, organizer_header, admin_header):
        assert client.get(f"{EVENTS}/{event.id}", headers=organizer_header).status_code == 200
        assert client.get(f"{EVENTS}/{event.id}", headers=admin_header).status_code == 200


class TestUpdateEvent:
    def test_partial_update(self, client, db, event, organizer_header):
        r = client.patch(
            f"{EVENTS}/{event.id}", json={"venue_name": "Hall A"}, headers=organizer_header
        )
        assert r.status_code == 200
        assert r.json()["venue_name"] == "Hall A"
        entry = db.query(AuditLog).filter(AuditLog.action == AuditAction.event_updated).one()
        assert entry.details == {"fields": ["venue_name"]}

    def test_valid_transition_chain(self, client, db, event, organizer_header):
        for status in ("planning", "active"):
            r = client.patch(
                f"{EVENTS}/{event.id}", json={"status": status}, headers=organizer_header
            )
            assert r.status_code == 200
        assert db.get(Event, event.id).status == EventStatus.active
        assert AuditAction.event_published in _audit_actions(db, event.id)

    def test_invalid_transition(self, client, event, organizer_header):
        r = client.patch(
            f"{EVENTS}/{event.id}", json={"status": "active"}, headers=organizer_header
        )
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_completed_is_terminal(self, client, db, organizer, event_factory, organizer_header):
        done = event_factory(organizer, status=EventStatus.completed)
        for status in ("draft", "active", "cancelled"):
            r = client.patch(
                f"{EVENTS}/{done.id}", json={"status": status}, headers=organizer_header
            )
            assert r.status_code == 400

    def test_currency_normalized_on_update(self, client, db, event, organizer_header):
        r = client.patch(
            f"{EVENTS}/{event.id}", json={"budget_currency": " EUR"}, headers=organizer_header
        )
        assert r.status_code == 200
        assert r.json()["budget_currency"] == "eur"
        assert db.get(Event, event.id).budget_currency == "eur"

    def test_currency_must_be_three_letters(self, client, db, event, organizer_header):
        r = client.patch(
            f"{EVENTS}/{event.id}", json={"budget_currency": "dollars"}, headers=organizer_header
        )
        assert r.status_code == 400
        assert db.get(Event, event.id).budget_currency == "usd"

    def test_required_field_cannot_be_null(self, client, event, organizer_header):
        r = client.patch(f"{EVENTS}/{event.id}", json={"title": None}, headers=organizer_header)
        assert r.status_code == 400
        assert r.json()["code"] == "MISSING_REQUIRED_FIELD"

    def test_not_owner(self, client, event, other_organizer, auth_headers):
        r = client.patch(
            f"{EVENTS}/{event.id}", json={"title": "Mine now"},
            headers=auth_headers(other_organizer),
        )
        assert r.status_code == 403

    def test_missing_event(self, client, organizer_header):
        r = client.patch(
            f"{EVENTS}/00000000-0000-0000-0000-000000000000",
            json={"title": "x"},
            headers=organizer_header,
        )
        assert r.status_code == 404


class TestDeleteEvent:
    def test_delete(self, client, db, event, organizer_header):
        event_id = event.id
        r = client.delete(f"{EVENTS}/{event_id}", headers=organizer_header)
        assert r.status_code == 204
        db.expire_all()
        assert db.get(Event, event_id) is None
        assert _audit_actions(db, event_id) == [AuditAction.event_deleted]

    def test_delete_not_owner(self, client, event, other_organizer, auth_headers):
        r = client.delete(f"{EVENTS}/{event.id}", headers=auth_headers(other_organizer))
        assert r.status_code == 403
