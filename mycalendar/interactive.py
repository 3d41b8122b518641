from __future__ import annotations

from datetime import time
from pathlib import Path
from typing import Callable, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mycalendar.calendar import Calendar
from mycalendar.conflicts import find_conflicts
from mycalendar.csv_io import export_calendar_csv
from mycalendar.errors import CalendarError
from mycalendar.export_ics import export_events_to_ics
from mycalendar.listeners import CalendarListener
from mycalendar.model import Event, RecurrencePattern
from mycalendar.parse import format_time
from mycalendar.recurrence import RecurrentEvent
from mycalendar.storage import CalendarsRepository, sanitize_title

console = Console()


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    return console.input(msg, markup=False)


def _ask(label: str, default: Optional[str] = None) -> Optional[str]:
    """
    Prompt for one field. Blank input gives `default` (None = "not set" / "keep").
    """
    hint = f" [{default}]" if default else ""
    value = _prompt(f"{label}{hint}: ").strip()
    return value if value else default


def _ask_visibility(label: str = "Public? [y/n, blank = unset]") -> Optional[bool]:
    value = _prompt(f"{label}: ").strip().lower()
    if value in ("y", "yes"):
        return True
    if value in ("n", "no"):
        return False
    return None


def _when(ev: Event) -> str:
    if ev.all_day:
        return "all day"
    return f"{format_time(ev.start_time)[:5]}-{format_time(ev.end_time)[:5]}"


def _sort_key(ev: Event) -> tuple:
    return (ev.start_date, ev.start_time or time.min, ev.subject)


def _event_line(ev: Event) -> str:
    bits = [ev.start_date.isoformat(), _when(ev), ev.subject]
    if ev.location:
        bits.append(f"@ {ev.location}")
    return escape(" | ".join(bits))


class _EchoListener(CalendarListener):
    """
    Keeps the terminal in sync with the calendar: every committed change is echoed.
    """

    def on_event_added(self, event: Event) -> None:
        _println(f"[green]Added:[/] {_event_line(event)}")

    def on_event_modified(self, event: Event) -> None:
        _println(f"[yellow]Updated:[/] {_event_line(event)}")

    def on_recurrent_event_added(self, series: RecurrentEvent) -> None:
        _println(f"[green]Added series:[/] {len(series.events)} events")
        for ev in series.events:
            _println(f"  - {_event_line(ev)}")


def _events_table(title: str, events: list[Event], numbered: bool = False) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    if numbered:
        table.add_column("#", justify="right")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Subject")
    table.add_column("Location")
    for i, ev in enumerate(events, start=1):
        date_s = ev.start_date.isoformat()
        if ev.multi_day:
            date_s += f" .. {ev.end_date.isoformat()}"
        row = [date_s, _when(ev), escape(ev.subject), escape(ev.location or "")]
        if numbered:
            row.insert(0, str(i))
        table.add_row(*row)
    return table


def _choose_calendar(repo: CalendarsRepository) -> Optional[Calendar]:
    calendars = list(repo.calendars)

    if not calendars:
        title = (_prompt("No calendars found. Create a new calendar (title) [blank = exit]: ") or "").strip()
        if not title:
            return None
        cal = Calendar(title)
        repo.add(cal)
        return cal

    table = Table(title="Calendars", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Calendar")
    table.add_column("Events", justify="right")
    for i, cal in enumerate(calendars, start=1):
        table.add_row(str(i), escape(cal.title), f"[yellow]{len(cal.all_events())}[/]")
    table.add_row(str(len(calendars) + 1), "[bold]Create a new calendar[/]", "")
    console.print(table)

    while True:
        pick = _prompt("Select calendar [blank = exit]: ").strip()
        if not pick:
            return None
        if not pick.isdigit() or not (1 <= int(pick) <= len(calendars) + 1):
            _println("Invalid choice.")
            continue
        idx = int(pick)
        if idx <= len(calendars):
            return calendars[idx - 1]

        title = _prompt("New calendar title: ").strip()
        if not title:
            continue
        if repo.get(title) is not None:
            _println(f"Calendar already exists: {escape(title)}")
            continue
        cal = Calendar(title)
        repo.add(cal)
        return cal


def _pick(items: list, label: str) -> Optional[int]:
    pick = _prompt(f"Enter number of the {label} [blank = back]: ").strip()
    if not pick:
        return None
    if not pick.isdigit() or not (1 <= int(pick) <= len(items)):
        _println("Out of range.")
        return None
    return int(pick) - 1


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


def _flow_add_event(cal: Calendar) -> None:
    subject = _ask("Subject")
    start_date = _ask("Start date (YYYY-MM-DD)")
    end_date = _ask("End date (YYYY-MM-DD)", default=start_date)
    start_time = _ask("Start time (HH:MM, blank = all day)")
    end_time = _ask("End time (HH:MM)") if start_time else None

    event = Event(
        subject=subject or "",
        start_date=start_date or "",
        end_date=end_date or "",
        start_time=start_time,
        end_time=end_time,
        is_public=_ask_visibility(),
        description=_ask("Description"),
        location=_ask("Location"),
    )
    cal.add_event(event)


def _flow_add_series(cal: Calendar) -> None:
    subject = _ask("Subject")
    start_date = _ask("Series start date (YYYY-MM-DD)")
    days = [d.strip() for d in (_ask("Weekdays (e.g. MONDAY,WEDNESDAY)") or "").split(",") if d.strip()]

    mode = (_ask("Stop after a number of events or on a date? [n/d]", default="n") or "n").lower()
    if mode.startswith("d"):
        pattern = RecurrencePattern.until(_ask("Last date (YYYY-MM-DD)") or "", days)
    else:
        count_s = _ask("Number of events") or ""
        if not count_s.isdigit():
            _println("Not a number.")
            return
        pattern = RecurrencePattern.after(int(count_s), days)

    start_time = _ask("Start time (HH:MM, blank = all day)")
    end_time = _ask("End time (HH:MM)") if start_time else None

    series = RecurrentEvent(
        pattern,
        start_date or "",
        start_time,
        end_time,
        subject or "",
        is_public=_ask_visibility(),
        description=_ask("Description"),
        location=_ask("Location"),
    )
    cal.add_recurrent_event(series)


def _flow_edit_event(cal: Calendar) -> None:
    events = sorted(cal.all_events(), key=_sort_key)
    if not events:
        _println("No events.")
        return

    console.print(_events_table("Edit event", events, numbered=True))
    idx = _pick(events, "event")
    if idx is None:
        return
    ev = events[idx]

    _println("Leave a field blank to keep its current value.")
    cal.edit_event(
        ev.id,
        subject=_ask("Subject"),
        start_date=_ask("Start date (YYYY-MM-DD)"),
        end_date=_ask("End date (YYYY-MM-DD)"),
        start_time=_ask("Start time (HH:MM)"),
        end_time=_ask("End time (HH:MM)"),
        is_public=_ask_visibility("Public? [y/n, blank = keep]"),
        description=_ask("Description"),
        location=_ask("Location"),
    )


def _flow_edit_series(cal: Calendar) -> None:
    series_list = [s for s in cal.recurrent_events if s.events]
    if not series_list:
        _println("No recurring series in this session.")
        return

    table = Table(title="Edit recurring series", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Subject")
    table.add_column("Days")
    table.add_column("Events", justify="right")
    for i, s in enumerate(series_list, start=1):
        table.add_row(str(i), escape(s.events[0].subject), ", ".join(s.pattern.day_names), str(len(s.events)))
    console.print(table)

    idx = _pick(series_list, "series")
    if idx is None:
        return

    _println("Leave a field blank to keep its current value.")
    cal.edit_recurrent_event(
        series_list[idx].id,
        subject=_ask("Subject"),
        start_time=_ask("Start time (HH:MM)"),
        end_time=_ask("End time (HH:MM)"),
        is_public=_ask_visibility("Public? [y/n, blank = keep]"),
        description=_ask("Description"),
        location=_ask("Location"),
    )


def _flow_agenda(cal: Calendar) -> None:
    range_from = _ask("From (YYYY-MM-DD)") or ""
    range_to = _ask("To (YYYY-MM-DD)", default=range_from) or ""
    events = sorted(cal.get_events_in_range(range_from, range_to), key=_sort_key)
    if not events:
        _println("No events in range.")
        return
    console.print(_events_table(f"Agenda {range_from} .. {range_to}", events))


def _flow_busy(cal: Calendar) -> None:
    day = _ask("Date (YYYY-MM-DD)") or ""
    at = _ask("Time (HH:MM)") or ""
    if cal.is_busy(day, at):
        _println("[red]Busy[/]")
    else:
        _println("[green]Free[/]")


def _flow_conflicts(cal: Calendar) -> None:
    confs = find_conflicts(sorted(cal.all_events(), key=_sort_key))
    if not confs:
        _println("No conflicts found.")
        return

    _println(f"Conflicts found: {len(confs)}")
    for k, (a, b) in enumerate(confs, start=1):
        _println(f"{k}. {_event_line(a)}  <->  {_event_line(b)}")


def _flow_toggle_conflicts(cal: Calendar) -> None:
    cal.allow_conflicts = not cal.allow_conflicts
    state = "allowed" if cal.allow_conflicts else "not allowed"
    _println(f"Overlapping events are now {state}.")


def _flow_export(cal: Calendar) -> None:
    downloads = Path.home() / "Downloads"
    default_name = f"{sanitize_title(cal.title)}.ics"

    out_in = _prompt(f"File name (.ics or .csv), default is [{default_name}]: ").strip()
    out_path = downloads / out_in if out_in else downloads / default_name
    if out_path.suffix.lower() not in (".ics", ".csv"):
        out_path = out_path.with_suffix(".ics")

    if out_path.suffix.lower() == ".csv":
        n = export_calendar_csv(cal, out_path)
    else:
        n = export_events_to_ics(cal.all_events(), out_path)

    _println(f"\nExported {n} events.")
    _println(f"Saved to: {escape(str(out_path.resolve()))}")


MENU: list[tuple[str, str, Callable[[Calendar], None]]] = [
    ("1", "Add event", _flow_add_event),
    ("2", "Add recurring series", _flow_add_series),
    ("3", "Edit event", _flow_edit_event),
    ("4", "Edit recurring series", _flow_edit_series),
    ("5", "Agenda (date range)", _flow_agenda),
    ("6", "Am I busy?", _flow_busy),
    ("7", "Show conflicts", _flow_conflicts),
    ("8", "Toggle allow conflicts", _flow_toggle_conflicts),
    ("9", "Export .ics / .csv", _flow_export),
]


def run_interactive(repo: CalendarsRepository, storage_dir: Path) -> None:
    """
    Interactive menu loop over one calendar. Saves all calendars on exit.
    """
    cal = _choose_calendar(repo)
    if cal is None:
        _println("Bye.")
        return

    listener = _EchoListener()
    cal.add_listener(listener)
    flows = {key: fn for key, _, fn in MENU}

    try:
        while True:
            conflicts_state = "allowed" if cal.allow_conflicts else "blocked"
            _println(f"\n=== {escape(cal.title)} === events: {len(cal.all_events())} | conflicts: {conflicts_state}")
            menu_text = "".join(f"[{key}] {label}\n" for key, label, _ in MENU)
            choice = _prompt("\n" + menu_text + "[0] Save & exit\nSelect: ").strip()

            if choice == "0":
                break
            flow = flows.get(choice)
            if flow is None:
                _println("Invalid choice.")
                continue
            try:
                flow(cal)
            except CalendarError as e:
                _println(f"[red]Error:[/] {escape(str(e))}")
    finally:
        cal.remove_listener(listener)

    written = repo.save_all(storage_dir)
    _println(f"Saved {len(written)} calendar(s) to {escape(str(storage_dir))}. Bye.")
