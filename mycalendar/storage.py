"""
Persistent storage for the user's calendars.

A storage directory (default: ~/.mycalendar) contains:

    <sanitized_title>.csv   one CSV export per calendar
    calendars.json          index: title, file name and allow_conflicts per calendar

Design rationale:
- the CSV files stay importable into other calendar tools
- the index keeps what CSV cannot carry (exact title, conflict setting)

The index is optional: without it (or if it is unreadable) every *.csv file is
restored as a calendar titled after its file name.

Restore reads each file with overlaps allowed, drops repeated equal rows, and
then applies the saved allow_conflicts flag. A file that cannot be read is
logged and skipped.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

from mycalendar.calendar import Calendar
from mycalendar.csv_io import export_calendar_csv, import_calendar_csv
from mycalendar.errors import CalendarError

logger = logging.getLogger(__name__)

INDEX_FILE = "calendars.json"
ENV_HOME = "MYCALENDAR_HOME"


def default_storage_dir() -> Path:
    """
    Return the default storage directory.

    $MYCALENDAR_HOME wins if set; otherwise ~/.mycalendar.
    Using a function instead of a constant makes testing easier,
    because tests can set the environment variable.
    """
    override = os.environ.get(ENV_HOME, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".mycalendar"


def sanitize_title(title: Optional[str]) -> str:
    """
    Turn a calendar title into a safe file stem ('My Calendar!' -> 'My_Calendar').
    """
    s = (title or "").strip()
    s = re.sub(r"[^A-Za-z0-9]+", "_", s)
    s = re.sub(r"_+", "_", s).strip("_")
    return s or "calendar"


def _load_index(directory: Path) -> Optional[list[dict[str, Any]]]:
    """
    Load the calendars index.

    Returns None if the file does not exist or is invalid,
    so the caller can fall back to scanning CSV files.
    """
    index_path = directory / INDEX_FILE
    if not index_path.exists():
        return None

    try:
        data = json.loads(index_path.read_text(encoding="utf-8"))
        entries = data.get("calendars", [])
        if not isinstance(entries, list):
            return None
        out: list[dict[str, Any]] = []
        for entry in entries:
            if isinstance(entry, dict) and isinstance(entry.get("file"), str):
                out.append(entry)
        return out
    except (OSError, json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        logger.warning("Ignoring unreadable calendar index %s", index_path)
        return None


class CalendarsRepository:
    """
    Holds several calendars in memory and saves/restores them as a directory of CSV files.
    """

    def __init__(self) -> None:
        self._calendars: list[Calendar] = []

    def add(self, calendar: Calendar) -> None:
        self._calendars.append(calendar)

    @property
    def calendars(self) -> tuple[Calendar, ...]:
        return tuple(self._calendars)

    def get(self, title: str) -> Optional[Calendar]:
        for cal in self._calendars:
            if cal.title == title:
                return cal
        return None

    def __len__(self) -> int:
        return len(self._calendars)

    def save_all(self, directory: str | Path) -> list[Path]:
        """
        Write one CSV per calendar plus the index. Returns written CSV paths.

        File names come from sanitize_title(); two calendars that sanitize to
        the same name get '_1', '_2', ... suffixes.
        """
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)

        previous = _load_index(target_dir) or []
        used: set[str] = set()
        written: list[Path] = []
        index: list[dict[str, Any]] = []

        for cal in self._calendars:
            base = sanitize_title(cal.title)
            filename = f"{base}.csv"
            n = 0
            while filename.lower() in used:
                n += 1
                filename = f"{base}_{n}.csv"
            used.add(filename.lower())

            path = target_dir / filename
            export_calendar_csv(cal, path)
            written.append(path)
            index.append({"title": cal.title, "file": filename, "allow_conflicts": bool(cal.allow_conflicts)})

        # drop files of calendars we saved before but no longer hold
        for entry in previous:
            name = Path(entry["file"]).name
            stale = target_dir / name
            if name.lower() not in used and stale.exists():
                stale.unlink()
                logger.info("Removed stale calendar file %s", stale)

        payload = {"calendars": index}
        (target_dir / INDEX_FILE).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Saved %d calendars to %s", len(written), target_dir)
        return written

    def restore_all(self, directory: str | Path) -> None:
        """
        Replace the current calendars with the ones stored in `directory`.
        A missing directory restores nothing.
        """
        self._calendars.clear()
        source_dir = Path(directory)
        if not source_dir.is_dir():
            return

        index = _load_index(source_dir)
        if index is None:
            index = [
                {"title": p.stem.replace("_", " "), "file": p.name, "allow_conflicts": False}
                for p in sorted(source_dir.glob("*.csv"))
            ]

        for entry in index:
            path = source_dir / Path(entry["file"]).name
            if not path.exists():
                logger.warning("Calendar file %s listed in index is missing", path)
                continue
            title = str(entry.get("title") or path.stem.replace("_", " "))
            # saved state may hold overlaps or equal events the flag alone would reject
            try:
                cal = import_calendar_csv(title, path, allow_conflicts=True, skip_duplicates=True)
            except CalendarError as e:
                logger.error("Skipping calendar %r from %s: %s", title, path, e)
                continue
            cal.allow_conflicts = bool(entry.get("allow_conflicts", False))
            self._calendars.append(cal)

        logger.info("Restored %d calendars from %s", len(self._calendars), source_dir)
