"""
Recurrence expansion.

Turns a RecurrencePattern plus series parameters into a concrete, ordered list
of Event instances (one per qualifying date).

Rules:
- count mode: the series start date itself counts as occurrence 1 when its
  weekday is in the pattern; otherwise we jump to the next pattern weekday
- end-date mode: every date from the series start through the end date
  (inclusive) whose weekday is in the pattern
- every instance is a single-day event; a timed series must end after it
  starts on the same day (no midnight-spanning recurring events)
"""

from __future__ import annotations

from datetime import date, time, timedelta
from typing import Iterable, Iterator, List, Optional

from mycalendar.errors import ValidationError
from mycalendar.model import Event, RecurrencePattern, new_id
from mycalendar.parse import DateLike, TimeLike, parse_date, parse_optional_time


def _days_to_next(current_rank: int, ranks: Iterable[int]) -> int:
    """
    Distance (1..7) from `current_rank` to the next weekday rank in `ranks`,
    wrapping across the week. A single-day pattern gives 7.
    """
    return min(((rank - current_rank - 1) % 7) + 1 for rank in ranks)


def _check_times(start_time: Optional[time], end_time: Optional[time]) -> None:
    if (start_time is None) != (end_time is None):
        raise ValidationError(
            "Both start time and end time must be set, or both must be empty",
            field="start_time" if start_time is None else "end_time",
        )
    if start_time is not None and end_time <= start_time:
        raise ValidationError(
            "End time must be after start time (recurring events cannot span midnight)",
            field="end_time",
        )


def expand(
    pattern: RecurrencePattern,
    series_start: DateLike,
    start_time: Optional[TimeLike],
    end_time: Optional[TimeLike],
    subject: str,
    is_public: Optional[bool] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
) -> List[Event]:
    """
    Expand `pattern` from `series_start` into ordered Event instances.

    All preconditions are checked before the first instance is built,
    so a failure never leaves a partial series behind.
    """
    if not isinstance(subject, str) or not subject.strip():
        raise ValidationError("Subject must not be empty", field="subject")
    start = parse_date(series_start, field="start_date")
    st = parse_optional_time(start_time, field="start_time")
    et = parse_optional_time(end_time, field="end_time")
    _check_times(st, et)

    ranks = [int(d) for d in pattern.days]

    if pattern.count is not None and len(ranks) > pattern.count:
        raise ValidationError(
            f"Recurrence count {pattern.count} is smaller than the number of days ({len(ranks)})",
            field="count",
        )
    if pattern.end_date is not None and pattern.end_date < start:
        raise ValidationError("Recurrence end date cannot be before the series start date", field="end_date")

    def make(day: date) -> Event:
        return Event(
            subject=subject,
            start_date=day,
            end_date=day,
            start_time=st,
            end_time=et,
            is_public=is_public,
            description=description,
            location=location,
        )

    events: List[Event] = []

    if pattern.count is not None:
        remaining = pattern.count
        current = start
        while True:
            if current in pattern:
                events.append(make(current))
                remaining -= 1
                if remaining == 0:
                    break
            current += timedelta(days=_days_to_next(current.weekday(), ranks))
    else:
        current = start
        while current <= pattern.end_date:
            if current in pattern:
                events.append(make(current))
            current += timedelta(days=1)

    return events


class RecurrentEvent:
    """
    A recurring series: the pattern plus its eagerly generated instances.

    Equality is identity; two series with the same parameters are different series.
    The shared fields only seed the instances: after construction each instance
    can be edited on its own (or all at once via Calendar.edit_recurrent_event).
    """

    def __init__(
        self,
        pattern: RecurrencePattern,
        start_date: DateLike,
        start_time: Optional[TimeLike],
        end_time: Optional[TimeLike],
        subject: str,
        is_public: Optional[bool] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
    ) -> None:
        self.id = new_id()
        self.pattern = pattern
        self.start_date = parse_date(start_date, field="start_date")
        self.events: List[Event] = expand(
            pattern,
            self.start_date,
            start_time,
            end_time,
            subject,
            is_public=is_public,
            description=description,
            location=location,
        )

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def __repr__(self) -> str:
        return (
            f"RecurrentEvent(id={self.id!r}, days={self.pattern.day_names}, "
            f"start_date={self.start_date.isoformat()}, instances={len(self.events)})"
        )
