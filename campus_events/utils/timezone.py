from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def to_utc_aware(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands timestamps back without tzinfo; everything we store is UTC,
    so naive values are tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
