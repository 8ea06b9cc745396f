from datetime import timedelta

import pytest

from evops.core.clock import utcnow
from evops.core.errors import ErrorCode, ValidationError
from evops.domain.enums import EventStatus
from evops.domain.validation import (
    clean_currency,
    clean_title,
    ensure_status_transition,
    ensure_strong_password,
    is_valid_email,
    is_valid_status_transition,
    is_valid_url,
    password_problems,
    validate_event_fields,
)


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current,new",
        [
            (EventStatus.draft, EventStatus.planning),
            (EventStatus.draft, EventStatus.cancelled),
            (EventStatus.planning, EventStatus.active),
            (EventStatus.planning, EventStatus.draft),
            (EventStatus.active, EventStatus.completed),
            (EventStatus.active, EventStatus.cancelled),
            (EventStatus.cancelled, EventStatus.draft),
        ],
    )
    def test_allowed(self, current, new):
        assert is_valid_status_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            (EventStatus.draft, EventStatus.active),
            (EventStatus.active, EventStatus.draft),
            (EventStatus.completed, EventStatus.active),
            (EventStatus.completed, EventStatus.draft),
            (EventStatus.cancelled, EventStatus.active),
        ],
    )
    def test_rejected(self, current, new):
        assert not is_valid_status_transition(current, new)

    def test_unknown_current_status(self):
        assert not is_valid_status_transition("archived", EventStatus.draft)

    def test_ensure_raises_with_code(self):
        with pytest.raises(ValidationError) as exc:
            ensure_status_transition(EventStatus.completed, EventStatus.active)
        assert exc.value.code == ErrorCode.INVALID_STATUS_TRANSITION


class TestFormats:
    def test_emails(self):
        assert is_valid_email("jane.doe+events@example.co.uk")
        assert not is_valid_email("jane@")
        assert not is_valid_email("not an email")

    def test_urls(self):
        assert is_valid_url("https://example.com")
        assert not is_valid_url("ftp://example.com")

    def test_password_problems_listed(self):
        problems = password_problems("short")
        assert "At least 12 characters" in problems
        assert "At least 1 number" in problems

    def test_strong_password(self):
        ensure_strong_password("Correct-Horse-42")

    def test_weak_password_details(self):
        with pytest.raises(ValidationError) as exc:
            ensure_strong_password("alllowercase")
        assert exc.value.details


class TestEventFields:
    def test_title_trimmed(self):
        assert clean_title("  Gala  ") == "Gala"

    def test_currency_normalized(self):
        assert clean_currency(" EUR ") == "eur"

    @pytest.mark.parametrize("value", ["dollars", "us", "", "12a", "€ur"])
    def test_currency_rejected(self, value):
        with pytest.raises(ValidationError):
            clean_currency(value)

    def test_blank_title(self):
        with pytest.raises(ValidationError):
            clean_title("   ")

    def test_negative_budget(self):
        with pytest.raises(ValidationError):
            validate_event_fields(budget=-1)

    def test_end_before_start(self):
        start = utcnow()
        with pytest.raises(ValidationError):
            validate_event_fields(start_date=start, end_date=start - timedelta(hours=1))

    def test_start_too_far_in_past(self):
        with pytest.raises(ValidationError):
            validate_event_fields(
                start_date=utcnow() - timedelta(days=400), check_start_date=True
            )

    def test_naive_dates_compare_as_utc(self):
        start = utcnow().replace(tzinfo=None)
        validate_event_fields(start_date=start, end_date=utcnow() + timedelta(hours=1))
