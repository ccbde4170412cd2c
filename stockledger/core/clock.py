"""Time helpers shared by entities and stores."""

from datetime import UTC, date, datetime


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(UTC)


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO timestamp column, tolerating empty or malformed values."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def parse_date(value: str | None) -> date | None:
    """Parse an ISO date column, tolerating empty or malformed values."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def to_iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None
