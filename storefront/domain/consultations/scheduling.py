"""
Default scheduling rule for new consultations.

A booking created without an explicit date is placed two calendar days
after creation at 10:00 local time (CONSULTATION_TIMEZONE) and marked
scheduled. Stored dates are naive wall-clock times in that zone.
"""

from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from ...config import CONSULTATION_TIMEZONE

DEFAULT_LEAD_DAYS = 2
DEFAULT_HOUR = 10
DEFAULT_TIME_LABEL = "10:00 AM"


def local_now(tz_name: str = CONSULTATION_TIMEZONE) -> datetime:
    """Current wall-clock time in the consultation time zone, without tzinfo"""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def to_local_naive(value: datetime, tz_name: str = CONSULTATION_TIMEZONE) -> datetime:
    """Convert an aware datetime to naive wall-clock in the consultation zone. Naive input is kept."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def default_schedule_for(created_at: datetime) -> datetime:
    return (created_at + timedelta(days=DEFAULT_LEAD_DAYS)).replace(
        hour=DEFAULT_HOUR, minute=0, second=0, microsecond=0
    )


def apply_default_schedule(data: dict, now: Optional[datetime] = None) -> dict:
    """
    Return a copy of booking fields with the default schedule applied.

    Only fires when no scheduled_date is present. Sets scheduled_date,
    scheduled_time ("10:00 AM") and forces status to "scheduled".
    """
    result = dict(data)
    if result.get("scheduled_date"):
        return result

    now = now or local_now()
    result["scheduled_date"] = default_schedule_for(now)
    result["scheduled_time"] = DEFAULT_TIME_LABEL
    result["status"] = "scheduled"
    return result
