"""
Parsing of user-supplied field values (strings -> date/time objects).

Accepted formats:
- dates: 'YYYY-MM-DD'
- times: 'HH:MM:SS' (optionally with up to 3 fractional digits) or 'HH:MM'
- weekdays: full English names, case-insensitive ('MONDAY', 'monday', ...)

Values that already are date/time objects are passed through unchanged,
so the model can be fed either from a form/CSV (strings) or from code.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional, Union

from mycalendar.errors import ValidationError


DateLike = Union[date, str]
TimeLike = Union[time, str]

WEEKDAY_NAMES = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_RE = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2})(?:\.(\d{1,3}))?)?$")


def parse_date(value: DateLike, field: str = "date") -> date:
    """
    Convert 'YYYY-MM-DD' (or a date) into a date.
    Raises ValidationError naming `field` for anything else.
    """
    # datetime is a subclass of date; keep only the calendar day
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip() if value is not None else ""
    m = _DATE_RE.match(text)
    if not m:
        raise ValidationError(f"{field} must be in the format of 'YYYY-MM-DD', got {value!r}", field=field)
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        raise ValidationError(f"{field} is not a valid calendar date: {value!r}", field=field) from None


def parse_time(value: TimeLike, field: str = "time") -> time:
    """
    Convert 'HH:MM:SS' / 'HH:MM' (or a time) into a time.
    Raises ValidationError naming `field` for anything else.
    """
    if isinstance(value, time):
        return value

    text = str(value).strip() if value is not None else ""
    m = _TIME_RE.match(text)
    if not m:
        raise ValidationError(f"{field} must be in the format of 'HH:MM:SS', got {value!r}", field=field)

    hh, mm, ss, frac = m.groups()
    millis = int(frac.ljust(3, "0")) if frac else 0
    try:
        return time(int(hh), int(mm), int(ss or 0), millis * 1000)
    except ValueError:
        raise ValidationError(f"{field} is not a valid time of day: {value!r}", field=field) from None


def parse_optional_time(value: Optional[TimeLike], field: str = "time") -> Optional[time]:
    if value is None:
        return None
    return parse_time(value, field=field)


def parse_weekday(token: str) -> int:
    """
    Map a weekday name to its rank (Monday = 0 ... Sunday = 6, same as date.weekday()).
    """
    name = str(token).strip().upper() if token is not None else ""
    if name not in WEEKDAY_NAMES:
        raise ValidationError(f"Day {token} is not a valid day", field="days")
    return WEEKDAY_NAMES.index(name)


def format_time(value: Optional[time]) -> Optional[str]:
    """Render a time as 'HH:MM:SS' (None stays None)."""
    if value is None:
        return None
    return value.strftime("%H:%M:%S")
