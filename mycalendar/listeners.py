"""
Change notifications.

A listener is any object with the three hooks below. Calendar calls them
synchronously, in registration order, after a mutation has been committed.
Subclass CalendarListener to override only the hooks you need.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mycalendar.model import Event
    from mycalendar.recurrence import RecurrentEvent


class CalendarListener:
    def on_event_added(self, event: "Event") -> None:
        """Called after a standalone event was added."""

    def on_event_modified(self, event: "Event") -> None:
        """Called after an event (standalone or series instance) was edited."""

    def on_recurrent_event_added(self, series: "RecurrentEvent") -> None:
        """Called after a whole series was added."""
