"""
CSV import/export (Google Calendar format).

Header:
    Subject,Start Date,Start Time,End Date,End Time,All Day Event,Description,Location,Private

- dates: MM/DD/YYYY
- times: h:mm AM/PM (empty for all-day events)
- Private: True only when the event is explicitly not public

Recurring series are written as their individual instances, so a re-imported
calendar contains them as standalone events.
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime, time
from pathlib import Path
from typing import Iterable, Optional

from mycalendar.calendar import Calendar
from mycalendar.errors import CsvFormatError
from mycalendar.model import Event

logger = logging.getLogger(__name__)

HEADER = [
    "Subject",
    "Start Date",
    "Start Time",
    "End Date",
    "End Time",
    "All Day Event",
    "Description",
    "Location",
    "Private",
]

# Only the leading columns are checked, so files with extra trailing columns still load
HEADER_PREFIX = "Subject,Start Date,Start Time,End Date,End Time,All Day Event"


def _csv_time(value: Optional[time]) -> str:
    """
    Convert a time to 'h:mm AM' (no leading zero on the hour).
    Seconds, and then microseconds, are added only when set: '9:00:45 AM'.
    """
    if value is None:
        return ""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    text = f"{hour}:{value.minute:02d}"
    if value.second or value.microsecond:
        text += f":{value.second:02d}"
    if value.microsecond:
        text += f".{value.microsecond:06d}"
    return f"{text} {suffix}"


_CSV_TIME_FORMATS = ("%I:%M %p", "%I:%M:%S %p", "%I:%M:%S.%f %p")


def _parse_csv_time(text: str, line_no: int) -> time:
    for fmt in _CSV_TIME_FORMATS:
        try:
            return datetime.strptime(text.strip(), fmt).time()
        except ValueError:
            continue
    raise CsvFormatError(f"Line {line_no}: invalid time {text!r}")


def _parse_csv_date(text: str, line_no: int) -> str:
    try:
        return datetime.strptime(text.strip(), "%m/%d/%Y").date().isoformat()
    except ValueError:
        raise CsvFormatError(f"Line {line_no}: invalid date {text!r}") from None


def event_to_row(event: Event) -> list[str]:
    return [
        event.subject,
        event.start_date.strftime("%m/%d/%Y"),
        _csv_time(event.start_time),
        event.end_date.strftime("%m/%d/%Y"),
        _csv_time(event.end_time),
        "True" if event.all_day else "False",
        event.description or "",
        event.location or "",
        "True" if event.is_public is False else "False",
    ]


def write_events_csv(events: Iterable[Event], out_path: str | Path) -> int:
    """
    Write events to a CSV file. Returns number of written rows.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with out.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(HEADER)
        for event in events:
            writer.writerow(event_to_row(event))
            count += 1

    logger.info("Wrote %d events to %s", count, out)
    return count


def export_calendar_csv(calendar: Calendar, out_path: str | Path) -> int:
    """
    Export every event of a calendar (standalone first, then series instances).
    """
    return write_events_csv(calendar.all_events(), out_path)


def row_to_event(cols: list[str], line_no: int) -> Event:
    """
    Rebuild one Event from a CSV row (already split into columns).
    """
    if len(cols) < len(HEADER):
        raise CsvFormatError(f"Line {line_no}: expected {len(HEADER)} columns, got {len(cols)}")

    subject, start_d, start_t, end_d, end_t, all_day, description, location, private = cols[:9]

    start_time = end_time = None
    if all_day.strip().lower() != "true":
        if start_t.strip():
            start_time = _parse_csv_time(start_t, line_no)
        if end_t.strip():
            end_time = _parse_csv_time(end_t, line_no)

    return Event(
        subject=subject,
        start_date=_parse_csv_date(start_d, line_no),
        end_date=_parse_csv_date(end_d, line_no),
        start_time=start_time,
        end_time=end_time,
        is_public=private.strip().lower() != "true",
        description=description or None,
        location=location or None,
    )


def import_calendar_csv(
    title: str, in_path: str | Path, allow_conflicts: bool = False, skip_duplicates: bool = False
) -> Calendar:
    """
    Build a new Calendar from a CSV file written by export_calendar_csv.

    Each row is added through Calendar.add_event, so the usual duplicate and
    overlap rules apply. With skip_duplicates, a row equal to an event already
    read is logged and dropped instead of failing the import.
    An empty file gives an empty calendar.
    """
    path = Path(in_path)
    calendar = Calendar(title, allow_conflicts=allow_conflicts)
    seen: set[tuple] = set()

    with path.open("r", encoding="utf-8", newline="") as f:
        header = f.readline()
        if not header:
            return calendar
        if not header.startswith(HEADER_PREFIX):
            raise CsvFormatError(f"Unexpected CSV header format in {path}")

        reader = csv.reader(f)
        for cols in reader:
            if not cols or not "".join(cols).strip():
                continue
            # +1 for the header line consumed above
            line_no = reader.line_num + 1
            event = row_to_event(cols, line_no)
            if skip_duplicates and event.key in seen:
                logger.warning("%s line %d: skipping duplicate of event %r", path, line_no, event.subject)
                continue
            calendar.add_event(event)
            seen.add(event.key)

    logger.info("Imported %d events from %s", len(calendar.events), path)
    return calendar
