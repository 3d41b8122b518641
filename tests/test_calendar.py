"""
Unit tests for the Calendar aggregate.

Consistency rules:
- structural duplicates are always rejected
- overlaps are rejected unless allow_conflicts is set
- a rejected add/edit leaves the calendar unchanged
- listeners hear about committed changes only
"""

import unittest
from datetime import date, time

from mycalendar.calendar import Calendar
from mycalendar.errors import ConflictError, NotFoundError, ValidationError
from mycalendar.listeners import CalendarListener
from mycalendar.model import Event, RecurrencePattern
from mycalendar.recurrence import RecurrentEvent


def _timed(subject, day, start, end):
    return Event(subject, day, day, start_time=start, end_time=end)


class _Recorder(CalendarListener):
    def __init__(self):
        self.calls = []

    def on_event_added(self, event):
        self.calls.append(("added", event.subject))

    def on_event_modified(self, event):
        self.calls.append(("modified", event.subject))

    def on_recurrent_event_added(self, series):
        self.calls.append(("series", len(series)))


class TestAddEvent(unittest.TestCase):
    def setUp(self) -> None:
        self.cal = Calendar("Work")

    def test_add_and_lookup_by_id(self) -> None:
        ev = _timed("Standup", "2025-11-03", "09:00", "09:15")
        self.cal.add_event(ev)
        self.assertIs(self.cal.get_event_by_id(ev.id), ev)
        self.assertEqual(self.cal.events, (ev,))

    def test_structural_duplicate_rejected(self) -> None:
        self.cal.add_event(_timed("Standup", "2025-11-03", "09:00", "09:15"))
        with self.assertRaises(ConflictError):
            self.cal.add_event(_timed("Standup", "2025-11-03", "09:00", "09:15"))
        self.assertEqual(len(self.cal.events), 1)

    def test_duplicate_rejected_even_when_conflicts_allowed(self) -> None:
        self.cal.allow_conflicts = True
        ev = Event("Holiday", "2025-12-24", "2025-12-24")
        self.cal.add_event(ev)
        with self.assertRaises(ConflictError):
            self.cal.add_event(ev)

    def test_event_equal_to_series_instance_rejected(self) -> None:
        cal = Calendar("Home", allow_conflicts=True)
        cal.add_recurrent_event(
            RecurrentEvent(RecurrencePattern.after(2, ["MONDAY"]), "2025-11-03", "18:00", "19:00", "Gym")
        )
        with self.assertRaises(ConflictError):
            cal.add_event(_timed("Gym", "2025-11-10", "18:00", "19:00"))

    def test_overlap_rejected_by_default(self) -> None:
        self.cal.add_event(_timed("A", "2025-11-03", "09:00", "11:00"))
        with self.assertRaises(ConflictError) as ctx:
            self.cal.add_event(_timed("B", "2025-11-03", "10:00", "10:30"))
        self.assertIn("allow_conflicts", str(ctx.exception))
        self.assertEqual([e.subject for e in self.cal.events], ["A"])

    def test_adjacent_events_accepted(self) -> None:
        self.cal.add_event(_timed("A", "2025-11-03", "09:00", "10:00"))
        self.cal.add_event(_timed("B", "2025-11-03", "10:00", "11:00"))
        self.assertEqual(len(self.cal.events), 2)

    def test_overlap_accepted_when_allowed(self) -> None:
        cal = Calendar("Busy", allow_conflicts=True)
        cal.add_event(_timed("A", "2025-11-03", "09:00", "11:00"))
        cal.add_event(_timed("B", "2025-11-03", "10:00", "10:30"))
        self.assertEqual(len(cal.events), 2)

    def test_overlap_with_series_instance_rejected(self) -> None:
        self.cal.add_recurrent_event(
            RecurrentEvent(RecurrencePattern.after(2, ["MONDAY"]), "2025-11-03", "09:00", "10:00", "Gym")
        )
        with self.assertRaises(ConflictError):
            self.cal.add_event(_timed("Dentist", "2025-11-10", "09:30", "10:30"))


class TestAddRecurrentEvent(unittest.TestCase):
    def test_series_instances_become_visible(self) -> None:
        cal = Calendar("Home")
        series = RecurrentEvent(RecurrencePattern.after(3, ["MONDAY"]), "2025-11-03", "18:00", "19:00", "Gym")
        cal.add_recurrent_event(series)

        self.assertEqual(len(cal.all_events()), 3)
        self.assertIs(cal.get_recurrent_event_by_id(series.id), series)
        self.assertIs(cal.get_event_by_id(series.events[1].id), series.events[1])

    def test_series_is_all_or_nothing(self) -> None:
        cal = Calendar("Home")
        cal.add_event(_timed("Doctor", "2025-11-17", "18:30", "19:30"))

        series = RecurrentEvent(RecurrencePattern.after(3, ["MONDAY"]), "2025-11-03", "18:00", "19:00", "Gym")
        with self.assertRaises(ConflictError):
            cal.add_recurrent_event(series)
        self.assertEqual(cal.recurrent_events, ())
        self.assertEqual(len(cal.all_events()), 1)

    def test_same_series_twice_rejected(self) -> None:
        cal = Calendar("Home", allow_conflicts=True)
        series = RecurrentEvent(RecurrencePattern.after(1, ["MONDAY"]), "2025-11-03", None, None, "X")
        cal.add_recurrent_event(series)
        with self.assertRaises(ConflictError):
            cal.add_recurrent_event(series)


class TestEditEvent(unittest.TestCase):
    def setUp(self) -> None:
        self.cal = Calendar("Work")
        self.ev = _timed("Review", "2025-11-03", "14:00", "15:00")
        self.cal.add_event(self.ev)

    def test_edit_changes_fields_in_place(self) -> None:
        old_id = self.ev.id
        edited = self.cal.edit_event(self.ev.id, subject="Design review", location="Room 2")
        self.assertIs(edited, self.ev)
        self.assertEqual(self.ev.id, old_id)
        self.assertEqual(self.ev.subject, "Design review")
        self.assertEqual(self.ev.location, "Room 2")
        self.assertEqual(self.ev.start_time, time(14, 0))

    def test_edit_with_no_changes_is_idempotent(self) -> None:
        before = self.ev.to_dict()
        self.cal.edit_event(self.ev.id)
        self.assertEqual(self.ev.to_dict(), before)

    def test_edit_may_overlap_its_own_old_slot(self) -> None:
        self.cal.edit_event(self.ev.id, end_time="15:30")
        self.assertEqual(self.ev.end_time, time(15, 30))

    def test_edit_into_conflict_rejected_and_unchanged(self) -> None:
        self.cal.add_event(_timed("Lunch", "2025-11-03", "12:00", "13:00"))
        with self.assertRaises(ConflictError):
            self.cal.edit_event(self.ev.id, start_time="12:30")
        self.assertEqual(self.ev.start_time, time(14, 0))

    def test_invalid_edit_rejected_and_unchanged(self) -> None:
        with self.assertRaises(ValidationError):
            self.cal.edit_event(self.ev.id, end_time="13:00")
        self.assertEqual(self.ev.end_time, time(15, 0))

    def test_unknown_id(self) -> None:
        with self.assertRaises(NotFoundError):
            self.cal.edit_event("nope", subject="X")

    def test_edit_single_series_instance(self) -> None:
        series = RecurrentEvent(RecurrencePattern.after(2, ["TUESDAY"]), "2025-11-04", "09:00", "10:00", "Class")
        self.cal.add_recurrent_event(series)
        second = series.events[1]
        self.cal.edit_event(second.id, location="Lab")
        self.assertEqual(second.location, "Lab")
        self.assertIsNone(series.events[0].location)


class TestEditRecurrentEvent(unittest.TestCase):
    def setUp(self) -> None:
        self.cal = Calendar("Uni")
        self.series = RecurrentEvent(
            RecurrencePattern.after(3, ["MONDAY"]), "2025-11-03", "09:00", "10:00", "Lecture"
        )
        self.cal.add_recurrent_event(self.series)

    def test_edit_all_instances_keeps_dates(self) -> None:
        self.cal.edit_recurrent_event(self.series.id, start_time="10:00", end_time="11:30", location="Hall A")
        for ev, day in zip(self.series.events, (3, 10, 17)):
            self.assertEqual(ev.start_date, date(2025, 11, day))
            self.assertEqual(ev.start_time, time(10, 0))
            self.assertEqual(ev.end_time, time(11, 30))
            self.assertEqual(ev.location, "Hall A")

    def test_instances_do_not_conflict_with_each_other(self) -> None:
        # would overlap the old slots of the same series
        self.cal.edit_recurrent_event(self.series.id, start_time="09:30", end_time="10:30")
        self.assertEqual(self.series.events[2].start_time, time(9, 30))

    def test_conflict_with_other_event_rejects_whole_edit(self) -> None:
        self.cal.add_event(_timed("Meeting", "2025-11-17", "11:00", "12:00"))
        with self.assertRaises(ConflictError):
            self.cal.edit_recurrent_event(self.series.id, end_time="11:30")
        self.assertTrue(all(ev.end_time == time(10, 0) for ev in self.series.events))

    def test_unknown_series(self) -> None:
        with self.assertRaises(NotFoundError):
            self.cal.edit_recurrent_event("nope", subject="X")


class TestQueries(unittest.TestCase):
    def setUp(self) -> None:
        self.cal = Calendar("Q")
        for day in ("2025-10-30", "2025-11-05", "2025-11-20"):
            self.cal.add_event(Event(f"E {day}", day, day))

    def test_range_returns_intersecting_events_only(self) -> None:
        found = self.cal.get_events_in_range("2025-11-01", "2025-11-10")
        self.assertEqual([e.subject for e in found], ["E 2025-11-05"])

    def test_range_includes_multi_day_event_crossing_edge(self) -> None:
        # the trip covers the 10-30 event
        self.cal.allow_conflicts = True
        self.cal.add_event(Event("Trip", "2025-10-28", "2025-11-02"))
        found = self.cal.get_events_in_range("2025-11-01", "2025-11-01")
        self.assertEqual([e.subject for e in found], ["Trip"])

    def test_reversed_range_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.cal.get_events_in_range("2025-11-10", "2025-11-01")

    def test_get_one_event_by_identity_triple(self) -> None:
        ev = _timed("Call", "2025-11-06", "16:00", "16:30")
        self.cal.add_event(ev)
        self.assertIs(self.cal.get_one_event("Call", "2025-11-06", "16:00"), ev)
        self.assertIsNone(self.cal.get_one_event("Call", "2025-11-06"))
        self.assertEqual(self.cal.get_one_event("E 2025-11-05", "2025-11-05").subject, "E 2025-11-05")

    def test_is_busy_half_open_for_timed_events(self) -> None:
        self.cal.add_event(_timed("Call", "2025-11-06", "16:00", "16:30"))
        self.assertTrue(self.cal.is_busy("2025-11-06", "16:00"))
        self.assertTrue(self.cal.is_busy("2025-11-06", "16:29"))
        self.assertFalse(self.cal.is_busy("2025-11-06", "16:30"))
        self.assertFalse(self.cal.is_busy("2025-11-06", "15:59"))

    def test_is_busy_all_day(self) -> None:
        self.assertTrue(self.cal.is_busy("2025-11-05", "23:59"))
        self.assertFalse(self.cal.is_busy("2025-11-06", "12:00"))


class TestListeners(unittest.TestCase):
    def test_notified_after_commit(self) -> None:
        cal = Calendar("L")
        rec = _Recorder()
        cal.add_listener(rec)

        ev = _timed("A", "2025-11-03", "09:00", "10:00")
        cal.add_event(ev)
        cal.edit_event(ev.id, subject="B")
        cal.add_recurrent_event(
            RecurrentEvent(RecurrencePattern.after(2, ["TUESDAY"]), "2025-11-04", None, None, "Gym")
        )
        self.assertEqual(rec.calls, [("added", "A"), ("modified", "B"), ("series", 2)])

    def test_rejected_mutation_not_announced(self) -> None:
        cal = Calendar("L")
        rec = _Recorder()
        cal.add_listener(rec)
        cal.add_event(_timed("A", "2025-11-03", "09:00", "10:00"))
        with self.assertRaises(ConflictError):
            cal.add_event(_timed("B", "2025-11-03", "09:00", "09:30"))
        self.assertEqual(rec.calls, [("added", "A")])

    def test_series_edit_announces_each_instance(self) -> None:
        cal = Calendar("L")
        series = RecurrentEvent(RecurrencePattern.after(3, ["FRIDAY"]), "2025-11-07", None, None, "Drinks")
        cal.add_recurrent_event(series)
        rec = _Recorder()
        cal.add_listener(rec)
        cal.edit_recurrent_event(series.id, subject="Beers")
        self.assertEqual(rec.calls, [("modified", "Beers")] * 3)

    def test_registration_is_idempotent_and_removable(self) -> None:
        cal = Calendar("L")
        rec = _Recorder()
        cal.add_listener(rec)
        cal.add_listener(rec)
        cal.add_event(Event("A", "2025-11-03", "2025-11-03"))
        self.assertEqual(len(rec.calls), 1)

        cal.remove_listener(rec)
        cal.add_event(Event("B", "2025-11-04", "2025-11-04"))
        self.assertEqual(len(rec.calls), 1)

    def test_none_listener_rejected(self) -> None:
        with self.assertRaises(TypeError):
            Calendar("L").add_listener(None)


if __name__ == "__main__":
    unittest.main()
