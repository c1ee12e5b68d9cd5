"""
Date helpers shared by the analytic services.

Lookback windows follow calendar-month arithmetic: stepping back from
31 March by one month lands on the last day of February.
"""

import calendar
from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current time; the default clock for every service."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes coming from the store as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def months_ago(moment: datetime, months: int) -> datetime:
    """Return ``moment`` shifted back by whole calendar months."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month_zero = divmod(month_index, 12)
    month = month_zero + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def years_ago(moment: datetime, years: int) -> datetime:
    return months_ago(moment, years * 12)


def calculate_age(birth_date: Optional[date], today: date) -> Optional[int]:
    """Calculate age in completed years, or None when the birth date is unknown."""

    if birth_date is None:
        return None

    return (
        today.year
        - birth_date.year
        - ((today.month, today.day) < (birth_date.month, birth_date.day))
    )


def in_window(value: Optional[datetime], since: Optional[datetime], until: Optional[datetime] = None) -> bool:
    """Check a possibly-missing timestamp against an inclusive lower bound."""
    if value is None:
        return since is None and until is None
    if since is not None and value < since:
        return False
    if until is not None and value > until:
        return False
    return True
