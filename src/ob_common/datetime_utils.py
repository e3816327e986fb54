"""UTC datetime utilities."""

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """[Jan 1 of year, Jan 1 of year+1) in UTC."""
    return (
        datetime(year, 1, 1, tzinfo=timezone.utc),
        datetime(year + 1, 1, 1, tzinfo=timezone.utc),
    )


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with utc_now()."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
