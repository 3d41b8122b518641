"""
MyCalendar: personal calendar with recurring events and double-booking prevention.
"""

from mycalendar.calendar import Calendar
from mycalendar.errors import CalendarError, ConflictError, NotFoundError, ValidationError
from mycalendar.listeners import CalendarListener
from mycalendar.model import Event, RecurrencePattern, Weekday
from mycalendar.recurrence import RecurrentEvent, expand
