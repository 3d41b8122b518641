"""
Conflict detection.

Decides whether two events overlap. The predicate `overlaps(a, b)` is one-directional;
callers use `conflicts(a, b)` which checks both orders.

All-day rule (either side has no start time), dates only:
    a.start strictly inside b, OR a.end strictly inside b,
    OR same start date, OR a.end == b.start

Timed rule (both sides timed), date+time instants:
    a.start strictly inside b, OR a.end strictly inside b,
    OR same start instant

So a timed event ending exactly when another begins is NOT a conflict,
while an all-day event ending on the day another starts IS one.
"""

from __future__ import annotations

from typing import Sequence

from mycalendar.model import Event


def _strictly_between(value, low, high) -> bool:
    return low < value < high


def overlaps(a: Event, b: Event) -> bool:
    """
    One-directional overlap test (see module docstring).
    Not symmetric by construction: use conflicts() for the pairwise answer.
    """
    if a.all_day or b.all_day:
        a_start, a_end = a.start_date, a.end_date
        b_start, b_end = b.start_date, b.end_date

        return (
            _strictly_between(a_start, b_start, b_end)
            or _strictly_between(a_end, b_start, b_end)
            or a_start == b_start
            or a_end == b_start
        )

    a_start, a_end = a.start_instant, a.end_instant
    b_start, b_end = b.start_instant, b.end_instant

    return (
        _strictly_between(a_start, b_start, b_end)
        or _strictly_between(a_end, b_start, b_end)
        or a_start == b_start
    )


def conflicts(a: Event, b: Event) -> bool:
    """True if the two events overlap in either call order."""
    return overlaps(a, b) or overlaps(b, a)


def find_conflicts(events: Sequence[Event]) -> list[tuple[Event, Event]]:
    """
    Find conflicting event pairs (A,B), each pair appears once (i<j).
    """
    found: list[tuple[Event, Event]] = []

    # O(n^2) is fine for a personal calendar
    for i in range(len(events)):
        ev1 = events[i]
        for j in range(i + 1, len(events)):
            ev2 = events[j]
            if conflicts(ev1, ev2):
                found.append((ev1, ev2))

    return found
