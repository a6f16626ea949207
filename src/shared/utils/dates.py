"""Calendar helpers shared by reports: billing periods and month ranges."""

import re
from calendar import monthrange
from datetime import date, datetime

PERIOD_REGEX = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def period_of(d: date) -> str:
    """Billing period (YYYY-MM) of a date."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_period(value) -> str:
    """Validate a stored YYYY-MM period string."""
    if not isinstance(value, str) or not PERIOD_REGEX.match(value.strip()):
        raise ValueError(f"Not a billing period: {value!r}")
    return value.strip()


def parse_date(value) -> date:
    """Parse a stored date: date/datetime objects or ISO text (time part ignored)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # "YYYY-MM-DD", "YYYY-MM-DD HH:MM:SS", "YYYY-MM-DDTHH:MM:SS"
        return date.fromisoformat(text[:10])
    raise ValueError(f"Not a date: {value!r}")


def days_in_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def month_start(d: date) -> date:
    return d.replace(day=1)


def shift_months(d: date, months: int) -> date:
    """First day of the month `months` away from d's month (negative = back)."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def last_periods(today: date, count: int) -> list[str]:
    """The last `count` billing periods ending with today's, oldest first."""
    return [period_of(shift_months(today, -i)) for i in range(count - 1, -1, -1)]
