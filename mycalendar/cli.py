"""
CLI (Command Line Interface).

This module provides quick terminal commands for power users and for testing, e.g.:

    mycalendar create "Work"
    mycalendar add "Work" "Standup" 2025-11-03 --start-time 09:00 --end-time 09:15
    mycalendar add-series "Work" "Gym" 2025-11-03 --days MONDAY,WEDNESDAY --count 6
    mycalendar edit "Work" "Standup" 2025-11-03 --at 09:00 --new-location "Room 2"
    mycalendar agenda "Work" --from 2025-11-01 --to 2025-11-30
    mycalendar busy "Work" 2025-11-03 09:10
    mycalendar conflicts "Work"
    mycalendar export "Work" out.ics
    mycalendar interactive

Calendars live in a storage directory (--data-dir, $MYCALENDAR_HOME or ~/.mycalendar).
Every command restores the calendars from there; commands that change a calendar save them back.

Note:
- The interactive UI lives in mycalendar/interactive.py
- This CLI is intentionally simple and prints plain text (no rich formatting)
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import time
from pathlib import Path

from mycalendar.calendar import Calendar
from mycalendar.conflicts import find_conflicts
from mycalendar.csv_io import export_calendar_csv
from mycalendar.errors import CalendarError, NotFoundError
from mycalendar.export_ics import export_events_to_ics
from mycalendar.model import Event, RecurrencePattern
from mycalendar.parse import format_time
from mycalendar.recurrence import RecurrentEvent
from mycalendar.storage import CalendarsRepository, default_storage_dir

logger = logging.getLogger(__name__)


def _storage_dir(args: argparse.Namespace) -> Path:
    """
    Return the directory that contains the saved calendars.
    """
    if args.data_dir:
        return Path(args.data_dir)
    return default_storage_dir()


def _load_repository(storage_dir: Path) -> CalendarsRepository:
    repo = CalendarsRepository()
    repo.restore_all(storage_dir)
    return repo


def _require_calendar(repo: CalendarsRepository, title: str) -> Calendar:
    cal = repo.get(title)
    if cal is None:
        raise NotFoundError(f"No calendar named '{title}'")
    return cal


def _event_line(ev: Event) -> str:
    """
    One-line plain text description of an event.
    """
    if ev.all_day:
        when = ev.start_date.isoformat()
        if ev.multi_day:
            when += f" .. {ev.end_date.isoformat()}"
        when += " (all day)"
    else:
        when = f"{ev.start_date.isoformat()} {format_time(ev.start_time)}-"
        if ev.multi_day:
            when += f"{ev.end_date.isoformat()} "
        when += format_time(ev.end_time)

    bits = [when, ev.subject]
    if ev.location:
        bits.append(f"@ {ev.location}")
    if ev.is_public is False:
        bits.append("(private)")
    return " | ".join(bits)


def _sort_key(ev: Event) -> tuple:
    return (ev.start_date, ev.start_time or time.min, ev.subject)


def _cmd_calendars(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    """
    List saved calendars with their event counts.
    """
    if not len(repo):
        print("No calendars yet. Create one with: mycalendar create <title>")
        return 0

    for cal in repo.calendars:
        flag = " (conflicts allowed)" if cal.allow_conflicts else ""
        print(f"{cal.title} | {len(cal.all_events())} events{flag}")
    return 0


def _cmd_create(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    """
    Create a new, empty calendar.
    """
    title = (args.title or "").strip()
    if not title:
        print("Please provide a calendar title.")
        return 1
    if repo.get(title) is not None:
        print(f"Calendar already exists: {title}")
        return 1

    repo.add(Calendar(title, allow_conflicts=args.allow_conflicts))
    print(f"Created calendar: {title}")
    return 0


def _cmd_add(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    """
    Add a single event.
    """
    cal = _require_calendar(repo, args.title)
    event = Event(
        subject=args.subject,
        start_date=args.start_date,
        end_date=args.end_date or args.start_date,
        start_time=args.start_time,
        end_time=args.end_time,
        is_public=args.is_public,
        description=args.description,
        location=args.location,
    )
    cal.add_event(event)
    print(f"Added: {_event_line(event)}")
    return 0


def _cmd_add_series(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    """
    Add a recurring series (all instances or none).
    """
    cal = _require_calendar(repo, args.title)
    days = [d.strip() for d in args.days.split(",") if d.strip()]

    if args.count is not None:
        pattern = RecurrencePattern.after(args.count, days)
    else:
        pattern = RecurrencePattern.until(args.until, days)

    series = RecurrentEvent(
        pattern,
        args.start_date,
        args.start_time,
        args.end_time,
        args.subject,
        is_public=args.is_public,
        description=args.description,
        location=args.location,
    )
    cal.add_recurrent_event(series)

    print(f"Added series with {len(series.events)} events:")
    for ev in series.events:
        print(f"- {_event_line(ev)}")
    return 0


def _cmd_edit(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    """
    Edit one event, found by (subject, start date, start time).
    """
    cal = _require_calendar(repo, args.title)
    event = cal.get_one_event(args.subject, args.start_date, args.at)
    if event is None:
        at = f" at {args.at}" if args.at else ""
        raise NotFoundError(f"No event '{args.subject}' on {args.start_date}{at}")

    cal.edit_event(
        event.id,
        subject=args.new_subject,
        start_date=args.new_start_date,
        end_date=args.new_end_date,
        start_time=args.new_start_time,
        end_time=args.new_end_time,
        is_public=args.is_public,
        description=args.description,
        location=args.location,
    )
    print(f"Edited: {_event_line(event)}")
    return 0


def _cmd_agenda(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    """
    Print every event in a closed date range.
    """
    cal = _require_calendar(repo, args.title)
    events = sorted(cal.get_events_in_range(args.range_from, args.range_to), key=_sort_key)
    if not events:
        print("No events in range.")
        return 0

    for ev in events:
        print(_event_line(ev))
    return 0


def _cmd_busy(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    cal = _require_calendar(repo, args.title)
    print("busy" if cal.is_busy(args.date, args.time) else "free")
    return 0


def _cmd_conflicts(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    """
    Print all conflicting event pairs (only possible with conflicts allowed).
    """
    cal = _require_calendar(repo, args.title)
    confs = find_conflicts(sorted(cal.all_events(), key=_sort_key))
    if not confs:
        print("No conflicts found.")
        return 0

    print(f"Conflicts found: {len(confs)}")
    for a, b in confs:
        print(f"- {_event_line(a)}  <->  {_event_line(b)}")
    return 0


def _cmd_export(args: argparse.Namespace, repo: CalendarsRepository) -> int:
    """
    Export a calendar into a .csv or .ics file (chosen by suffix).
    """
    cal = _require_calendar(repo, args.title)
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide an output path.")
        return 1

    suffix = Path(out_path).suffix.lower()
    if suffix == ".ics":
        n = export_events_to_ics(cal.all_events(), out_path)
    elif suffix == ".csv":
        n = export_calendar_csv(cal, out_path)
    else:
        print("Output file must end in .csv or .ics")
        return 1

    print(f"Exported {n} events to: {out_path}")
    return 0


def _add_visibility_args(p: argparse.ArgumentParser) -> None:
    group = p.add_mutually_exclusive_group()
    group.add_argument("--public", dest="is_public", action="store_const", const=True, help="Mark as public")
    group.add_argument("--private", dest="is_public", action="store_const", const=False, help="Mark as private")
    p.set_defaults(is_public=None)


def _add_detail_args(p: argparse.ArgumentParser) -> None:
    _add_visibility_args(p)
    p.add_argument("--description", type=str, default=None, help="Free text description")
    p.add_argument("--location", type=str, default=None, help="Location")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="mycalendar", description="MyCalendar CLI")
    parser.add_argument("--data-dir", type=str, default=None, help="Calendar storage directory")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output (-vv for debug)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("calendars", help="List calendars")

    p_create = sub.add_parser("create", help="Create a calendar")
    p_create.add_argument("title", type=str, help="Calendar title")
    p_create.add_argument("--allow-conflicts", action="store_true", help="Allow overlapping events")

    p_add = sub.add_parser("add", help="Add a single event")
    p_add.add_argument("title", type=str, help="Calendar title")
    p_add.add_argument("subject", type=str, help="Event subject")
    p_add.add_argument("start_date", type=str, help="Start date (YYYY-MM-DD)")
    p_add.add_argument("--end-date", type=str, default=None, help="End date (default: start date)")
    p_add.add_argument("--start-time", type=str, default=None, help="Start time (HH:MM[:SS])")
    p_add.add_argument("--end-time", type=str, default=None, help="End time (HH:MM[:SS])")
    _add_detail_args(p_add)

    p_series = sub.add_parser("add-series", help="Add a recurring series")
    p_series.add_argument("title", type=str, help="Calendar title")
    p_series.add_argument("subject", type=str, help="Event subject")
    p_series.add_argument("start_date", type=str, help="Series start date (YYYY-MM-DD)")
    p_series.add_argument("--days", type=str, required=True, help="Comma separated weekdays, e.g. MONDAY,WEDNESDAY")
    stop = p_series.add_mutually_exclusive_group(required=True)
    stop.add_argument("--count", type=int, default=None, help="Stop after this many events")
    stop.add_argument("--until", type=str, default=None, help="Stop on or before this date (YYYY-MM-DD)")
    p_series.add_argument("--start-time", type=str, default=None, help="Start time (HH:MM[:SS])")
    p_series.add_argument("--end-time", type=str, default=None, help="End time (HH:MM[:SS])")
    _add_detail_args(p_series)

    p_edit = sub.add_parser("edit", help="Edit an event found by subject + start date (+ time)")
    p_edit.add_argument("title", type=str, help="Calendar title")
    p_edit.add_argument("subject", type=str, help="Current subject")
    p_edit.add_argument("start_date", type=str, help="Current start date (YYYY-MM-DD)")
    p_edit.add_argument("--at", type=str, default=None, help="Current start time (omit for all-day events)")
    p_edit.add_argument("--new-subject", type=str, default=None)
    p_edit.add_argument("--new-start-date", type=str, default=None)
    p_edit.add_argument("--new-end-date", type=str, default=None)
    p_edit.add_argument("--new-start-time", type=str, default=None)
    p_edit.add_argument("--new-end-time", type=str, default=None)
    _add_detail_args(p_edit)

    p_agenda = sub.add_parser("agenda", help="List events in a date range")
    p_agenda.add_argument("title", type=str, help="Calendar title")
    p_agenda.add_argument("--from", dest="range_from", type=str, required=True, help="First day (YYYY-MM-DD)")
    p_agenda.add_argument("--to", dest="range_to", type=str, required=True, help="Last day (YYYY-MM-DD)")

    p_busy = sub.add_parser("busy", help="Check whether a date/time is occupied")
    p_busy.add_argument("title", type=str, help="Calendar title")
    p_busy.add_argument("date", type=str, help="Date (YYYY-MM-DD)")
    p_busy.add_argument("time", type=str, help="Time (HH:MM[:SS])")

    p_conf = sub.add_parser("conflicts", help="Show overlapping events")
    p_conf.add_argument("title", type=str, help="Calendar title")

    p_export = sub.add_parser("export", help="Export a calendar to .csv or .ics")
    p_export.add_argument("title", type=str, help="Calendar title")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


COMMANDS = {
    "calendars": (_cmd_calendars, False),
    "create": (_cmd_create, True),
    "add": (_cmd_add, True),
    "add-series": (_cmd_add_series, True),
    "edit": (_cmd_edit, True),
    "agenda": (_cmd_agenda, False),
    "busy": (_cmd_busy, False),
    "conflicts": (_cmd_conflicts, False),
    "export": (_cmd_export, False),
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    storage_dir = _storage_dir(args)
    logger.debug("Using calendar storage %s", storage_dir)

    try:
        repo = _load_repository(storage_dir)

        if args.command == "interactive":
            from mycalendar.interactive import run_interactive

            run_interactive(repo, storage_dir)
            raise SystemExit(0)

        handler, mutates = COMMANDS[args.command]
        rc = handler(args, repo)
        if rc == 0 and mutates:
            repo.save_all(storage_dir)
    except CalendarError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    raise SystemExit(rc)
