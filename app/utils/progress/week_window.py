from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from app.core.config import settings


def as_naive_utc(value: datetime) -> datetime:
    """Drop tzinfo after converting aware datetimes to UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_week_window(
    reference: Optional[datetime] = None,
    first_weekday: Optional[int] = None
) -> Tuple[datetime, datetime]:
    """
    Get the week window containing the reference time.

    The week starts at 00:00:00 on `first_weekday` (Monday == 0, defaults to
    the configured WEEK_START_DAY) and ends at 23:59:59.999999 six days later.

    Returns:
        tuple: (week_start, week_end) as naive UTC datetimes
    """
    if reference is None:
        reference = datetime.now(timezone.utc)
    if first_weekday is None:
        first_weekday = settings.WEEK_START_WEEKDAY

    current = as_naive_utc(reference)
    days_since_start = (current.weekday() - first_weekday) % 7

    week_start = (current - timedelta(days=days_since_start)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    week_end = week_start + timedelta(days=7) - timedelta(microseconds=1)

    return week_start, week_end
