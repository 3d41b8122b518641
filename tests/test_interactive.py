"""
Tests for the interactive menu, driven by scripted answers.

_prompt is patched with a list of answers (one per question) and the rich
console writes into a buffer so the output can be inspected.
"""

import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from rich.console import Console

import mycalendar.interactive as interactive
from mycalendar.calendar import Calendar
from mycalendar.model import Event
from mycalendar.storage import CalendarsRepository


class TestInteractive(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)
        self.buf = io.StringIO()
        patcher = mock.patch.object(interactive, "console", Console(file=self.buf, width=120))
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def run_with(self, repo: CalendarsRepository, answers: list[str]) -> None:
        with mock.patch.object(interactive, "_prompt", side_effect=answers):
            interactive.run_interactive(repo, self.data_dir)

    def test_create_calendar_add_event_and_save(self) -> None:
        repo = CalendarsRepository()
        answers = [
            "Home",  # new calendar title
            "1",  # add event
            "Gym",
            "2025-11-03",
            "",  # end date = start date
            "18:00",
            "19:00",
            "y",
            "",
            "Studio",
            "0",
        ]
        self.run_with(repo, answers)

        cal = repo.get("Home")
        self.assertEqual(len(cal.events), 1)
        ev = cal.events[0]
        self.assertEqual(ev.subject, "Gym")
        self.assertIs(ev.is_public, True)
        self.assertIsNone(ev.description)
        self.assertEqual(ev.location, "Studio")
        self.assertIn("Added:", self.buf.getvalue())

        restored = CalendarsRepository()
        restored.restore_all(self.data_dir)
        self.assertEqual(restored.get("Home").events[0].subject, "Gym")

    def test_error_in_flow_keeps_menu_running(self) -> None:
        repo = CalendarsRepository()
        repo.add(Calendar("Home"))
        answers = [
            "1",  # pick first calendar
            "1",  # add event
            "Gym",
            "03.11.2025",
            "",
            "",  # all day
            "",
            "",
            "",
            "0",
        ]
        self.run_with(repo, answers)

        self.assertIn("Error:", self.buf.getvalue())
        self.assertEqual(repo.get("Home").events, ())

    def test_add_series_and_edit_series(self) -> None:
        repo = CalendarsRepository()
        repo.add(Calendar("Uni"))
        answers = [
            "1",
            "2",  # add series
            "Lecture",
            "2025-11-03",
            "MONDAY, wednesday",
            "n",
            "4",
            "10:15",
            "12:00",
            "",
            "",
            "",
            "4",  # edit series
            "1",
            "",
            "",
            "",
            "",
            "",
            "Hall A",
            "0",
        ]
        self.run_with(repo, answers)

        series = repo.get("Uni").recurrent_events[0]
        self.assertEqual([ev.start_date.day for ev in series.events], [3, 5, 10, 12])
        self.assertTrue(all(ev.location == "Hall A" for ev in series.events))

    def test_agenda_and_busy(self) -> None:
        cal = Calendar("Work")
        cal.add_event(Event("Review", "2025-11-03", "2025-11-03", "14:00", "15:00"))
        repo = CalendarsRepository()
        repo.add(cal)

        answers = [
            "1",
            "5",  # agenda
            "2025-11-01",
            "2025-11-30",
            "6",  # busy
            "2025-11-03",
            "14:30",
            "0",
        ]
        self.run_with(repo, answers)

        out = self.buf.getvalue()
        self.assertIn("Review", out)
        self.assertIn("Busy", out)

    def test_blank_first_answer_exits_without_saving(self) -> None:
        self.run_with(CalendarsRepository(), [""])
        self.assertFalse((self.data_dir / "calendars.json").exists())


if __name__ == "__main__":
    unittest.main()
