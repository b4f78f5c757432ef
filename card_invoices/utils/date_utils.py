"""Date manipulation utilities"""

import calendar
import re
from datetime import date, datetime
from typing import Tuple
from zoneinfo import ZoneInfo

from card_invoices.config import settings
from card_invoices.domain.exceptions import InvalidArgumentError

# Only extended ISO forms; fromisoformat alone also takes week dates and basic format
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
DATETIME_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}[T ]", re.ASCII)


def validate_day_of_month(value: object, field_name: str) -> int:
    """Return value if it is an integer day-of-month in 1..31, else raise InvalidArgumentError"""
    # bool is an int subclass; True must not pass as day 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{field_name} must be an integer, got {value!r}")
    if not 1 <= value <= 31:
        raise InvalidArgumentError(f"{field_name} must be between 1 and 31, got {value}")
    return value


def days_in_month(year: int, month: int) -> int:
    """Number of days in a 1-based calendar month"""
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """
    Build a date for day-of-month in (year, month), clamped to the month's last day.

    Day 31 in April gives April 30, day 30 in February gives Feb 28 (or 29 in
    leap years). Never rolls over into the following month.
    """
    return date(year, month, min(day, days_in_month(year, month)))


def next_month(year: int, month: int) -> Tuple[int, int]:
    """(year, month) of the month after the given one, rolling December into January"""
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _local_zone(tz_name: str | None = None) -> ZoneInfo:
    # settings.timezone is checked when settings load; unknown names raise ZoneInfoNotFoundError
    return ZoneInfo(tz_name or settings.timezone)


def local_today(tz_name: str | None = None) -> date:
    """Today's calendar date in the configured local timezone"""
    return datetime.now(_local_zone(tz_name)).date()


def parse_local_date(value: object, tz_name: str | None = None) -> date:
    """
    Interpret value as a local calendar day.

    Accepts:
    - date objects (returned as-is)
    - naive datetimes (their own calendar day, no shifting)
    - aware datetimes (converted to the local timezone first)
    - "YYYY-MM-DD" strings, read literally as that calendar day
    - ISO datetime strings, following the datetime rules above

    Raises:
        InvalidArgumentError: value is not a usable date
    """
    # datetime is a date subclass, check it first
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(_local_zone(tz_name)).date()
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        try:
            if DATE_PATTERN.fullmatch(text):
                return date.fromisoformat(text)
            if DATETIME_PREFIX.match(text):
                return parse_local_date(datetime.fromisoformat(text), tz_name)
        except ValueError as e:
            raise InvalidArgumentError(f"Malformed date: {value!r}") from e
        raise InvalidArgumentError(f"Malformed date: {value!r}")

    raise InvalidArgumentError(f"Expected a date or YYYY-MM-DD string, got {type(value).__name__}")
