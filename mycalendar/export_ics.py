"""
Write calendar events as an iCalendar (.ics) file for other calendar apps.

Timed events get floating local DTSTART/DTEND (no TZID), since events carry no zone.
All-day events use VALUE=DATE; DTEND is exclusive, so it is the day after the last day.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable

from mycalendar.model import Event

logger = logging.getLogger(__name__)


def _ics_escape(text: str) -> str:
    """
    Escape backslash, newline, semicolon and comma for ICS text values.
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(value: datetime) -> str:
    """
    Convert a naive datetime to ICS local datetime string 'YYYYMMDDTHHMMSS'.
    """
    return value.strftime("%Y%m%dT%H%M%S")


def event_to_vevent(event: Event, dtstamp: str) -> list[str]:
    lines = ["BEGIN:VEVENT", f"UID:{_ics_escape(event.id)}@mycalendar", f"DTSTAMP:{dtstamp}"]

    if event.all_day:
        lines.append(f"DTSTART;VALUE=DATE:{event.start_date.strftime('%Y%m%d')}")
        lines.append(f"DTEND;VALUE=DATE:{(event.end_date + timedelta(days=1)).strftime('%Y%m%d')}")
    else:
        lines.append(f"DTSTART:{_dt_local(event.start_instant)}")
        lines.append(f"DTEND:{_dt_local(event.end_instant)}")

    lines.append(f"SUMMARY:{_ics_escape(event.subject)}")
    if event.location:
        lines.append(f"LOCATION:{_ics_escape(event.location)}")
    if event.description and event.description.strip():
        lines.append(f"DESCRIPTION:{_ics_escape(event.description.strip())}")
    if event.is_public is not None:
        lines.append("CLASS:PUBLIC" if event.is_public else "CLASS:PRIVATE")
    lines.append("END:VEVENT")
    return lines


def export_events_to_ics(events: Iterable[Event], out_path: str | Path) -> int:
    """
    Write one VEVENT per event into a VCALENDAR file and return how many were written.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    body: list[str] = []
    written = 0
    for event in events:
        body += event_to_vevent(event, stamp)
        written += 1

    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//MyCalendar//EN", "CALSCALE:GREGORIAN", *body, "END:VCALENDAR"]

    target = Path(out_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    # RFC 5545 lines end in CRLF
    target.write_bytes(("\r\n".join(lines) + "\r\n").encode("utf-8"))
    logger.info("Exported %d events to %s", written, target)
    return written
