"""
UTC date helpers.

Every period boundary in the API is computed in UTC so that "this month" or
"today" does not depend on the server's local timezone.
"""
import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_utc_date(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (or date/datetime) into an aware UTC datetime.

    Strings without an offset are taken to be UTC; a trailing "Z" is accepted.

    Raises:
        ValueError: If the string is not a valid ISO-8601 date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def from_epoch_ms(value: Optional[Union[int, float]]) -> Optional[datetime]:
    """Convert milliseconds since the epoch to an aware UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)


def to_utc_iso(value: Optional[datetime]) -> Optional[str]:
    """Format as ISO-8601 with millisecond precision and a "Z" suffix."""
    if value is None:
        return None
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def utc_month_bounds(year: Optional[int] = None, month: Optional[int] = None,
                     now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Half-open [start, end) range of a calendar month in UTC.

    Defaults to the current UTC month. ``month`` is 1-based.
    """
    now = ensure_utc(now) if now else utcnow()
    year = year or now.year
    month = month or now.month
    if month < 1 or month > 12:
        raise ValueError("Month must be between 1 and 12")
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


def utc_year_bounds(year: Optional[int] = None, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Half-open [start, end) range of a UTC calendar year, the current one by default."""
    now = ensure_utc(now) if now else utcnow()
    year = year or now.year
    return datetime(year, 1, 1, tzinfo=timezone.utc), datetime(year + 1, 1, 1, tzinfo=timezone.utc)


def utc_day_bounds(day: Union[str, date, datetime, None] = None) -> Tuple[datetime, datetime]:
    """Half-open [start, end) range of a UTC calendar day (today by default)."""
    if day is None:
        moment = utcnow()
    else:
        moment = parse_utc_date(day)
    start = datetime(moment.year, moment.month, moment.day, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def days_remaining(expires_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole days left until ``expires_at``, rounded up, never negative."""
    if expires_at is None:
        return 0
    now = ensure_utc(now) if now else utcnow()
    seconds = (ensure_utc(expires_at) - now).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 86400)
