"""
Timezone Utilities - Centralized timezone handling

All calendar dates in the app are India Standard Time days, so a habit
logged at 00:30 IST belongs to that IST date regardless of server timezone.
"""
from datetime import date, datetime, timedelta
from typing import List, Optional
import pytz


# Application timezone - India/Kolkata
APP_TIMEZONE = "Asia/Kolkata"
IST_TZ = pytz.timezone(APP_TIMEZONE)


def get_ist_tz():
    """
    Get the IST timezone object

    Returns:
        pytz timezone for Asia/Kolkata
    """
    return IST_TZ


def get_ist_now() -> datetime:
    """
    Get current datetime in IST

    Returns:
        Timezone-aware datetime object in IST
    """
    return datetime.now(IST_TZ)


def get_ist_today_date() -> date:
    """
    Get today's date in IST

    Returns:
        date object for today in IST
    """
    return get_ist_now().date()


def to_ist(value: datetime) -> datetime:
    """Convert a datetime to IST; naive values are treated as UTC"""
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(IST_TZ)


def to_ist_date_string(value: Optional[datetime] = None) -> str:
    """
    Format a datetime as its IST calendar date

    Args:
        value: Datetime to convert (defaults to now)

    Returns:
        Date string in YYYY-MM-DD format
    """
    value = value or get_ist_now()
    return to_ist(value).date().isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as stored by Postgres"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def get_date_days_ago(days_ago: int, today: Optional[date] = None) -> date:
    today = today or get_ist_today_date()
    return today - timedelta(days=days_ago)


def get_last_n_days(days: int, today: Optional[date] = None) -> List[date]:
    """
    Get the last N IST dates, newest first

    Args:
        days: Number of days to include (today counts as one)
    """
    today = today or get_ist_today_date()
    return [today - timedelta(days=i) for i in range(days)]


def get_month_bounds(today: Optional[date] = None):
    """Return (first_day, last_day) of the month containing today"""
    today = today or get_ist_today_date()
    first = today.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    return first, next_month - timedelta(days=1)


def seconds_until_midnight(now: Optional[datetime] = None) -> int:
    """Seconds until the next IST midnight"""
    now = to_ist(now) if now else get_ist_now()
    tomorrow = (now + timedelta(days=1)).date()
    midnight = IST_TZ.localize(datetime.combine(tomorrow, datetime.min.time()))
    return int((midnight - now).total_seconds())


def is_new_day(stored_date: Optional[str], today: Optional[date] = None) -> bool:
    """True if the stored YYYY-MM-DD date differs from today's IST date"""
    if not stored_date:
        return True
    today = today or get_ist_today_date()
    return stored_date != today.isoformat()
