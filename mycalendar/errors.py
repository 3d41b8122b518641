"""
Error types raised by the calendar core.

Every error is local to the operation that raised it and leaves prior state unchanged.
All of them derive from ValueError so callers that only care about "bad input"
can catch a single builtin type.
"""

from __future__ import annotations

from typing import Optional


class CalendarError(ValueError):
    """Base class for every error raised by mycalendar."""


class ValidationError(CalendarError):
    """
    Malformed or contradictory input fields.

    `field` names the offending field when there is a single one
    (e.g. "subject", "end_date", "days").
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ConflictError(CalendarError):
    """A mutation would create an overlap or a structural duplicate."""


class NotFoundError(CalendarError):
    """Lookup by id failed for an edit operation."""


class CsvFormatError(CalendarError):
    """A CSV file does not have the expected calendar export shape."""
