"""
Central data model definitions used across the project.

This module defines the canonical structure of Event and RecurrencePattern objects so that:
- all modules share the same field names
- validation happens once, at construction time
- the CSV, iCalendar and terminal layers can read every field they need

Events have two notions of identity:
- `id`: a generated opaque identifier, used for lookup and edits
- `key`: the tuple of all user-visible fields, used only for duplicate detection
  (dataclass equality compares the same fields and ignores `id`)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from datetime import date, datetime, time
from enum import IntEnum
from typing import Any, Iterable, Optional, Tuple, Union

from mycalendar.errors import ValidationError
from mycalendar.parse import (
    DateLike,
    WEEKDAY_NAMES,
    format_time,
    parse_date,
    parse_optional_time,
    parse_weekday,
)


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Event:
    """
    One calendar occurrence (single day or multi-day).

    An event without start_time is an all-day event.
    Attributes stay assignable after construction; assignment does not
    re-validate, so edits should go through Calendar.edit_event.
    """

    subject: str
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_public: Optional[bool] = None
    description: Optional[str] = None
    location: Optional[str] = None
    id: str = field(default_factory=new_id, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.subject, str) or not self.subject.strip():
            raise ValidationError("Subject must not be empty", field="subject")

        self.start_date = parse_date(self.start_date, field="start_date")
        self.end_date = parse_date(self.end_date, field="end_date")
        self.start_time = parse_optional_time(self.start_time, field="start_time")
        self.end_time = parse_optional_time(self.end_time, field="end_time")

        if self.start_time is None and self.end_time is not None:
            raise ValidationError("start_time is missing: set both start and end time, or neither", field="start_time")
        if self.start_time is not None and self.end_time is None:
            raise ValidationError("end_time is missing: set both start and end time, or neither", field="end_time")

        if self.end_date < self.start_date:
            raise ValidationError("End date cannot be before start date", field="end_date")

        if not self.all_day and self.end_instant <= self.start_instant:
            raise ValidationError("End date/time must be after start date/time", field="end_time")

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def all_day(self) -> bool:
        return self.start_time is None

    @property
    def multi_day(self) -> bool:
        return self.end_date > self.start_date

    @property
    def start_instant(self) -> Optional[datetime]:
        if self.start_time is None:
            return None
        return datetime.combine(self.start_date, self.start_time)

    @property
    def end_instant(self) -> Optional[datetime]:
        if self.end_time is None:
            return None
        return datetime.combine(self.end_date, self.end_time)

    @property
    def key(self) -> Tuple[Any, ...]:
        """Structural key: every user-visible field, never the id."""
        return (
            self.subject,
            self.start_date,
            self.end_date,
            self.start_time,
            self.end_time,
            self.is_public,
            self.description,
            self.location,
        )

    # ------------------------------------------------------------------
    # Copies and edits
    # ------------------------------------------------------------------

    def merged(self, **changes: Any) -> "Event":
        """
        Return a new, fully validated Event built from this one.
        Changes whose value is None keep the current value.
        The copy gets a fresh id.
        """
        values = {name: getattr(self, name) for name in FIELD_NAMES}
        for name, value in changes.items():
            if name not in values:
                raise TypeError(f"Unknown event field: {name}")
            if value is not None:
                values[name] = value
        return Event(**values)

    def assign(self, other: "Event") -> None:
        """Copy every user-visible field of `other` onto this event (id is kept)."""
        for name in FIELD_NAMES:
            setattr(self, name, getattr(other, name))

    def to_dict(self) -> dict[str, Any]:
        """Serializable view: ISO dates and 'HH:MM:SS' times."""
        return {
            "id": self.id,
            "subject": self.subject,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "is_public": self.is_public,
            "description": self.description,
            "location": self.location,
        }


FIELD_NAMES: Tuple[str, ...] = tuple(f.name for f in fields(Event) if f.name != "id")


class Weekday(IntEnum):
    """Fixed 7-day enumeration; values match date.weekday()."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def parse(cls, token: Union["Weekday", str]) -> "Weekday":
        if isinstance(token, Weekday):
            return token
        return cls(parse_weekday(token))


def _normalize_days(days: Iterable[Union[Weekday, str]]) -> Tuple[Weekday, ...]:
    if days is None:
        raise ValidationError("Recurrence days must not be empty", field="days")
    # a bare string is one token, not a sequence of characters
    if isinstance(days, (str, Weekday)):
        days = [days]

    parsed = {Weekday.parse(d) for d in days}
    if not parsed:
        raise ValidationError("Recurrence days must not be empty", field="days")
    return tuple(sorted(parsed))


@dataclass(frozen=True)
class RecurrencePattern:
    """
    Which weekdays a series recurs on and when it stops.

    Exactly one stop condition is set:
    - count: stop after this many occurrences
    - end_date: stop on or before this date (inclusive)
    """

    days: Tuple[Weekday, ...]
    count: Optional[int] = None
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "days", _normalize_days(self.days))

        if (self.count is None) == (self.end_date is None):
            raise ValidationError("A recurrence needs either an occurrence count or an end date", field="count")

        if self.count is not None:
            if isinstance(self.count, bool) or not isinstance(self.count, int):
                raise ValidationError(f"Recurrence count must be an integer, got {self.count!r}", field="count")
            if self.count <= 0:
                raise ValidationError("Recurrence count must be greater than 0", field="count")
        else:
            object.__setattr__(self, "end_date", parse_date(self.end_date, field="end_date"))

    @classmethod
    def after(cls, count: int, days: Iterable[Union[Weekday, str]]) -> "RecurrencePattern":
        return cls(days=_normalize_days(days), count=count)

    @classmethod
    def until(cls, end_date: DateLike, days: Iterable[Union[Weekday, str]]) -> "RecurrencePattern":
        return cls(days=_normalize_days(days), end_date=end_date)

    @property
    def day_names(self) -> list[str]:
        return [WEEKDAY_NAMES[d] for d in self.days]

    def __contains__(self, day: object) -> bool:
        if isinstance(day, date):
            return day.weekday() in self.days
        return day in self.days

