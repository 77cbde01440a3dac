"""Local-time day and month arithmetic used for bucketing events."""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from eventdesk.types import DayBucketKey

BUCKET_KEY_FORMAT = "%Y-%m-%d"

DateLike = Union[date, datetime]


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    """Return the named IANA zone, or the system local zone when unset."""
    if name:
        return ZoneInfo(name)
    local = datetime.now().astimezone().tzinfo
    assert local is not None
    return local


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Express ``value`` in ``tz``; naive values are taken to already be local."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def add_elapsed(value: datetime, delta: timedelta) -> datetime:
    """Add elapsed (not wall-clock) time to an aware ``value`` in its own zone."""
    shifted = value.astimezone(timezone.utc) + delta
    return shifted.astimezone(value.tzinfo)


def _local_date(value: DateLike, tz: tzinfo) -> date:
    if isinstance(value, datetime):
        return localize(value, tz).date()
    return value


def start_of_day(value: DateLike, tz: tzinfo) -> datetime:
    """Local midnight of the day ``value`` falls on."""
    return datetime.combine(_local_date(value, tz), time.min, tzinfo=tz)


def day_range(value: DateLike, tz: tzinfo) -> Tuple[datetime, datetime]:
    """Half-open ``[start, end)`` window covering one local day.

    The end is the next calendar day's midnight, so DST transition days are
    23 or 25 hours long.
    """
    day = _local_date(value, tz)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def month_range(value: DateLike, tz: tzinfo) -> Tuple[datetime, datetime]:
    """Half-open ``[start, end)`` window covering one local calendar month."""
    first = _local_date(value, tz).replace(day=1)
    if first.month == 12:
        following = first.replace(year=first.year + 1, month=1)
    else:
        following = first.replace(month=first.month + 1)
    return (
        datetime.combine(first, time.min, tzinfo=tz),
        datetime.combine(following, time.min, tzinfo=tz),
    )


def bucket_key(value: datetime, tz: tzinfo) -> DayBucketKey:
    """The ``YYYY-MM-DD`` key of the local day an instant falls on."""
    return localize(value, tz).strftime(BUCKET_KEY_FORMAT)


def parse_bucket_key(key: DayBucketKey) -> date:
    return datetime.strptime(key, BUCKET_KEY_FORMAT).date()


def day_of_month_label(key: DayBucketKey) -> str:
    """Day part of a bucket key, as shown in the month strip."""
    parts = key.split("-")
    if len(parts) >= 3:
        return parts[2]
    return ""


def weekday_label(key: DayBucketKey) -> str:
    """Abbreviated weekday name (``Mon``) for a bucket key, or ``""``."""
    try:
        return parse_bucket_key(key).strftime("%a")
    except ValueError:
        return ""
