from datetime import UTC, datetime


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps read back from stores without tz support."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utcnow() -> datetime:
    return datetime.now(UTC)
