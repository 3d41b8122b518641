"""
Calendar aggregate.

Owns standalone events and recurring series and keeps the whole set consistent:
- no structural duplicates (same user-visible fields, whatever the id)
- unless allow_conflicts is set, no two events overlap (see mycalendar.conflicts)

Every mutation is validated completely before anything is changed, so a rejected
add or edit has no visible side effect. Listeners are notified only after commit.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterator, List, Optional, Tuple

from mycalendar.conflicts import conflicts
from mycalendar.errors import ConflictError, NotFoundError, ValidationError
from mycalendar.model import Event
from mycalendar.parse import DateLike, TimeLike, parse_date, parse_optional_time, parse_time
from mycalendar.recurrence import RecurrentEvent

logger = logging.getLogger(__name__)


class Calendar:
    def __init__(self, title: str, allow_conflicts: bool = False) -> None:
        self.title = title
        self.allow_conflicts = allow_conflicts
        self._events: List[Event] = []
        self._recurrent_events: List[RecurrentEvent] = []
        self._listeners: List[Any] = []

    def __repr__(self) -> str:
        return (
            f"Calendar(title={self.title!r}, events={len(self._events)}, "
            f"series={len(self._recurrent_events)}, allow_conflicts={self.allow_conflicts})"
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def events(self) -> Tuple[Event, ...]:
        """Standalone events, in insertion order."""
        return tuple(self._events)

    @property
    def recurrent_events(self) -> Tuple[RecurrentEvent, ...]:
        return tuple(self._recurrent_events)

    def _iter_all(self) -> Iterator[Event]:
        # standalone first, then each series' instances
        yield from self._events
        for series in self._recurrent_events:
            yield from series.events

    def all_events(self) -> List[Event]:
        """Standalone events followed by every series instance."""
        return list(self._iter_all())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_event_by_id(self, event_id: str) -> Optional[Event]:
        for event in self._iter_all():
            if event.id == event_id:
                return event
        return None

    def get_recurrent_event_by_id(self, series_id: str) -> Optional[RecurrentEvent]:
        for series in self._recurrent_events:
            if series.id == series_id:
                return series
        return None

    def get_one_event(
        self, subject: str, start_date: DateLike, start_time: Optional[TimeLike] = None
    ) -> Optional[Event]:
        """
        First event matching (subject, start date, start time).
        start_time=None matches all-day events.
        """
        day = parse_date(start_date, field="start_date")
        at = parse_optional_time(start_time, field="start_time")
        for event in self._iter_all():
            if event.subject == subject and event.start_date == day and event.start_time == at:
                return event
        return None

    def get_events_in_range(self, range_start: DateLike, range_end: DateLike) -> List[Event]:
        """
        Every event whose [start_date, end_date] intersects the closed range.
        """
        lo = parse_date(range_start, field="range_start")
        hi = parse_date(range_end, field="range_end")
        if hi < lo:
            raise ValidationError("Range end cannot be before range start", field="range_end")

        return [e for e in self._iter_all() if e.start_date <= hi and e.end_date >= lo]

    def is_busy(self, day: DateLike, at: TimeLike) -> bool:
        """
        True if some event occupies the given date and time.
        Timed events occupy [start, end) (half-open); all-day events occupy whole dates.
        """
        target_day = parse_date(day, field="date")
        target = datetime.combine(target_day, parse_time(at, field="time"))

        for event in self._iter_all():
            if not (event.start_date <= target_day <= event.end_date):
                continue
            if event.all_day:
                return True
            if event.start_instant <= target < event.end_instant:
                return True
        return False

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _find_conflict(
        self,
        candidate: Event,
        exclude: Optional[Event] = None,
        skip_series: Optional[RecurrentEvent] = None,
    ) -> Optional[Event]:
        """
        First existing event that conflicts with `candidate`.
        `exclude` is skipped by identity; all instances of `skip_series` are skipped.
        """
        for existing in self._events:
            if existing is exclude:
                continue
            if conflicts(candidate, existing):
                return existing
        for series in self._recurrent_events:
            if series is skip_series:
                continue
            for existing in series.events:
                if existing is exclude:
                    continue
                if conflicts(candidate, existing):
                    return existing
        return None

    def _rejected(self, error: Exception) -> Exception:
        logger.debug("Calendar %r rejected mutation: %s", self.title, error)
        return error

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_event(self, event: Event) -> None:
        """
        Add a standalone event.
        Raises ConflictError for a structural duplicate, or for an overlap
        when conflicts are not allowed.
        """
        for existing in self._iter_all():
            if existing is event or existing.key == event.key:
                raise self._rejected(ConflictError("Same event exists in this calendar"))

        if not self.allow_conflicts:
            clash = self._find_conflict(event)
            if clash is not None:
                raise self._rejected(
                    ConflictError(
                        f"Event '{event.subject}' overlaps '{clash.subject}' on {clash.start_date.isoformat()}. "
                        "You can turn on allow_conflicts in the calendar settings"
                    )
                )

        self._events.append(event)
        logger.info("Added event %r on %s to calendar %r", event.subject, event.start_date, self.title)
        self._announce("on_event_added", event)

    def add_recurrent_event(self, series: RecurrentEvent) -> None:
        """
        Add a whole series. Either every instance is admitted or none is.
        """
        if any(existing is series for existing in self._recurrent_events):
            raise self._rejected(ConflictError("Same recurrent event exists in this calendar"))

        if not self.allow_conflicts:
            for instance in series.events:
                clash = self._find_conflict(instance)
                if clash is not None:
                    raise self._rejected(
                        ConflictError(
                            f"Recurrent event '{instance.subject}' on {instance.start_date.isoformat()} "
                            f"overlaps '{clash.subject}'. You can turn on allow_conflicts in the calendar settings"
                        )
                    )

        self._recurrent_events.append(series)
        logger.info(
            "Added recurrent event %r (%d instances) to calendar %r",
            series.events[0].subject if series.events else "",
            len(series.events),
            self.title,
        )
        self._announce("on_recurrent_event_added", series)

    def edit_event(
        self,
        event_id: str,
        subject: Optional[str] = None,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        start_time: Optional[TimeLike] = None,
        end_time: Optional[TimeLike] = None,
        is_public: Optional[bool] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Event:
        """
        Edit one event (standalone or series instance) in place.
        Arguments left as None keep their current value.
        Returns the edited (live) event.
        """
        event = self.get_event_by_id(event_id)
        if event is None:
            raise self._rejected(NotFoundError(f"Event with ID {event_id} not found in calendar"))

        candidate = event.merged(
            subject=subject,
            start_date=start_date,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time,
            is_public=is_public,
            description=description,
            location=location,
        )

        if not self.allow_conflicts:
            clash = self._find_conflict(candidate, exclude=event)
            if clash is not None:
                raise self._rejected(
                    ConflictError(
                        f"Updated event conflicts with '{clash.subject}' on {clash.start_date.isoformat()}"
                    )
                )

        event.assign(candidate)
        logger.info("Edited event %s in calendar %r", event.id, self.title)
        self._announce("on_event_modified", event)
        return event

    def edit_recurrent_event(
        self,
        series_id: str,
        subject: Optional[str] = None,
        start_time: Optional[TimeLike] = None,
        end_time: Optional[TimeLike] = None,
        is_public: Optional[bool] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
    ) -> RecurrentEvent:
        """
        Edit every instance of a series at once; instance dates are kept.

        The first instance's current values are the template for fields left as None.
        Instances of the same series never conflict with each other here.
        """
        series = self.get_recurrent_event_by_id(series_id)
        if series is None:
            raise self._rejected(NotFoundError(f"Recurrent event with ID {series_id} not found in calendar"))
        if not series.events:
            raise self._rejected(ValidationError("Recurrent event has no event instances"))

        template = series.events[0].merged(
            subject=subject,
            start_time=start_time,
            end_time=end_time,
            is_public=is_public,
            description=description,
            location=location,
        )

        candidates = [
            (instance, template.merged(start_date=instance.start_date, end_date=instance.end_date))
            for instance in series.events
        ]

        if not self.allow_conflicts:
            for instance, candidate in candidates:
                clash = self._find_conflict(candidate, skip_series=series)
                if clash is not None:
                    raise self._rejected(
                        ConflictError(
                            f"Updated recurrent event would conflict with '{clash.subject}' "
                            f"on {instance.start_date.isoformat()}"
                        )
                    )

        for instance, candidate in candidates:
            instance.assign(candidate)
        logger.info("Edited %d instances of series %s in calendar %r", len(candidates), series.id, self.title)

        for instance, _ in candidates:
            self._announce("on_event_modified", instance)
        return series

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Any) -> None:
        """Register a listener; adding the same listener twice is a no-op."""
        if listener is None:
            raise TypeError("listener cannot be None")
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Any) -> None:
        if listener is None:
            raise TypeError("listener cannot be None")
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _announce(self, hook: str, payload: Any) -> None:
        for listener in list(self._listeners):
            getattr(listener, hook)(payload)
