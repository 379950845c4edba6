"""Small time and display helpers shared across services."""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def start_of_day(moment: datetime) -> datetime:
    """Midnight (UTC) of the calendar day containing `moment`."""
    moment = moment.astimezone(timezone.utc) if moment.tzinfo else moment.replace(tzinfo=timezone.utc)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_next_day(moment: datetime) -> datetime:
    return start_of_day(moment) + timedelta(days=1)


def seconds_until(target: datetime, now: datetime) -> int:
    """Whole seconds from `now` until `target`, rounded up and never negative."""
    return max(0, math.ceil((target - now).total_seconds()))


def format_time_until_reset(reset_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Format the time left until a quota reset, e.g. ``"3h 12m"`` or ``"45m"``.

    Args:
        reset_at: When the quota resets.
        now: Reference time, defaults to the current UTC time.

    Returns:
        Human readable hours and minutes.
    """
    remaining = max(0, int((reset_at - (now or utcnow())).total_seconds()))
    hours, rest = divmod(remaining, 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_distance(distance: float) -> str:
    """Display a distance in miles, switching to feet under one mile."""
    if distance < 1:
        return f"{round(distance * 5280)} ft"
    return f"{round(distance)} mi"


def format_handicap(handicap: int) -> str:
    """Display a handicap; plus handicaps (below zero) are shown with a leading '+'."""
    if handicap == 0:
        return "Scratch"
    if handicap < 0:
        return f"+{abs(handicap)}"
    return str(handicap)
