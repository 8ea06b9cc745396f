from datetime import UTC, datetime

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def utcnow() -> datetime:
    return datetime.now(UTC)


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(utcnow().timestamp() * 1000)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes; convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
