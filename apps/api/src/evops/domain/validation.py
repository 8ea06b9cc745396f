"""Input rules shared by the event, vendor and sponsor services."""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from evops.core.clock import as_utc, utcnow
from evops.core.errors import ErrorCode, ValidationError
from evops.domain.enums import EventStatus

VALID_STATUS_TRANSITIONS: dict[str, tuple[str, ...]] = {
    EventStatus.draft: (EventStatus.planning, EventStatus.cancelled),
    EventStatus.planning: (EventStatus.active, EventStatus.draft, EventStatus.cancelled),
    EventStatus.active: (EventStatus.completed, EventStatus.cancelled),
    EventStatus.completed: (),
    EventStatus.cancelled: (EventStatus.draft,),
}

TITLE_MAX = 200
DESCRIPTION_MAX = 10000
VENUE_NAME_MAX = 200
VENUE_ADDRESS_MAX = 500
BUSINESS_NAME_MAX = 200

EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)*\.[a-zA-Z]{2,}$"
)
URL_RE = re.compile(r"^https?://.+")
CURRENCY_RE = re.compile(r"^[a-z]{3}$")

PASSWORD_MIN_LENGTH = 12
PASSWORD_SPECIAL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>\[\]\\;'`~_+=-]")


def is_valid_status_transition(current_status: str, new_status: str) -> bool:
    allowed = VALID_STATUS_TRANSITIONS.get(current_status)
    if allowed is None:
        return False
    return new_status in allowed


def ensure_status_transition(current_status: str, new_status: str) -> None:
    if not is_valid_status_transition(current_status, new_status):
        raise ValidationError(
            f"Cannot change event status from '{current_status}' to '{new_status}'",
            code=ErrorCode.INVALID_STATUS_TRANSITION,
        )


def is_valid_email(email: str) -> bool:
    return EMAIL_RE.match(email) is not None


def is_valid_url(url: str) -> bool:
    return URL_RE.match(url) is not None


def password_problems(password: str) -> list[str]:
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"At least {PASSWORD_MIN_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        problems.append("At least 1 uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("At least 1 lowercase letter")
    if not re.search(r"[0-9]", password):
        problems.append("At least 1 number")
    if not PASSWORD_SPECIAL_RE.search(password):
        problems.append("At least 1 special character")
    return problems


def ensure_strong_password(password: str) -> None:
    problems = password_problems(password)
    if problems:
        raise ValidationError("Password is too weak", details=problems)


def _check_length(value: str | None, limit: int, label: str) -> None:
    if value is not None and len(value) > limit:
        raise ValidationError(f"{label} must be {limit} characters or less")


def clean_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise ValidationError("Event title cannot be empty")
    _check_length(title, TITLE_MAX, "Event title")
    return title


def clean_currency(currency: str) -> str:
    """Lowercased ISO 4217 code, e.g. ``"EUR"`` -> ``"eur"``."""
    currency = (currency or "").strip().lower()
    if not CURRENCY_RE.match(currency):
        raise ValidationError("Currency must be a three-letter code")
    return currency


def validate_event_fields(
    *,
    description: str | None = None,
    venue_name: str | None = None,
    venue_address: str | None = None,
    budget: float | None = None,
    expected_attendees: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    check_start_date: bool = False,
) -> None:
    _check_length(description, DESCRIPTION_MAX, "Description")
    _check_length(venue_name, VENUE_NAME_MAX, "Venue name")
    _check_length(venue_address, VENUE_ADDRESS_MAX, "Venue address")
    start_date = as_utc(start_date)
    end_date = as_utc(end_date)
    if budget is not None and budget < 0:
        raise ValidationError("Budget cannot be negative")
    if expected_attendees is not None and expected_attendees < 0:
        raise ValidationError("Expected attendees cannot be negative")
    if check_start_date and start_date is not None:
        if start_date < utcnow() - timedelta(days=365):
            raise ValidationError("Event date cannot be more than one year in the past")
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError("End date must be after start date")


def clean_business_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Name cannot be empty")
    _check_length(name, BUSINESS_NAME_MAX, "Name")
    return name


def validate_contact(contact_email: str | None, website: str | None = None) -> None:
    if contact_email and not is_valid_email(contact_email):
        raise ValidationError("Invalid email format")
    if website and not is_valid_url(website):
        raise ValidationError("Invalid website URL format")
