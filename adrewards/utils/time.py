"""Time utilities (UTC now, local calendar-day bounds, epoch millis)."""
from __future__ import annotations
from datetime import date, datetime, time, timezone, timedelta, tzinfo

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes coming back from storage are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

def _midnight(day: date, tz: tzinfo | None) -> datetime:
    if tz is None:
        # Naive local midnight localized with the offset in force on that date.
        return datetime.combine(day, time()).astimezone()
    return datetime.combine(day, time(), tzinfo=tz)

def local_day_bounds(as_of: datetime, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Return [midnight, next midnight) of the calendar day containing ``as_of``.

    ``tz=None`` means the server's local timezone. Both bounds are localized
    separately, so DST-transition days span 23 or 25 hours.
    """
    day = ensure_aware(as_of).astimezone(tz).date()
    return _midnight(day, tz), _midnight(day + timedelta(days=1), tz)

def to_utc(value: datetime) -> datetime:
    """SQLite drops offsets on write, so persist everything as UTC."""
    return ensure_aware(value).astimezone(timezone.utc)

def to_epoch_millis(value: datetime) -> int:
    return int(ensure_aware(value).timestamp() * 1000)

def from_epoch_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

__all__ = ["utc_now", "ensure_aware", "to_utc", "local_day_bounds", "to_epoch_millis", "from_epoch_millis"]
