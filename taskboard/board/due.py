"""Due-date classification relative to the viewer's local calendar day.

Every place that needs due-date logic (self view, admin view, filtering)
goes through this module.
"""

import re
from datetime import date, datetime, tzinfo
from enum import StrEnum

from dateutil import parser as dateutil_parser

from taskboard.core.config import constants, settings
from taskboard.core.errors import ValidationError


class DueBucket(StrEnum):
    """Where a task's due date falls relative to today."""

    NO_DUE = "no_due"
    TODAY = "today"
    LATE = "late"
    FUTURE = "future"


class DueFilter(StrEnum):
    """Due-date filter vocabulary offered to views."""

    ALL = "all"
    TODAY = "today"
    LATE_TODAY = "late_today"
    LATE = "late"
    NO_DUE = "no_due"
    NOT_DUE_YET = "not_due_yet"


DueInput = str | date | datetime | None

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_EXACT_FILTERS: dict[DueFilter, DueBucket] = {
    DueFilter.TODAY: DueBucket.TODAY,
    DueFilter.LATE: DueBucket.LATE,
    DueFilter.NO_DUE: DueBucket.NO_DUE,
    DueFilter.NOT_DUE_YET: DueBucket.FUTURE,
}


def _zone(tz: tzinfo | None) -> tzinfo:
    return tz if tz is not None else settings.local_timezone()


def _localize(value: datetime, zone: tzinfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def _end_of_day(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, constants.END_OF_DAY, tzinfo=zone)


def resolve_due(due_at: DueInput, tz: tzinfo | None = None) -> datetime | None:
    """Turn a raw due value into an aware datetime in the viewer timezone.

    A date without a time component means the end of that calendar day
    (23:59:59.999 local), so a task is not late the moment its due day starts.
    Naive timestamps are read as viewer-local time.

    Raises:
        ValidationError: If a string value is not a parseable date or timestamp
    """
    zone = _zone(tz)

    if due_at is None:
        return None
    if isinstance(due_at, datetime):
        return _localize(due_at, zone)
    if isinstance(due_at, date):
        return _end_of_day(due_at, zone)

    text = due_at.strip()
    if not text:
        return None

    try:
        if _DATE_ONLY.match(text):
            return _end_of_day(date.fromisoformat(text), zone)
        return _localize(dateutil_parser.isoparse(text), zone)
    except ValueError as e:
        raise ValidationError(f"Due date is not a valid date: {due_at}", fields=["due_at"]) from e


def bucket(due_at: DueInput, now: datetime | None = None, tz: tzinfo | None = None) -> DueBucket:
    """Classify a due value by calendar day, not by instant."""
    zone = _zone(tz)
    due = resolve_due(due_at, zone)
    if due is None:
        return DueBucket.NO_DUE

    today = _localize(now, zone).date() if now is not None else datetime.now(zone).date()
    due_day = due.date()

    if due_day > today:
        return DueBucket.FUTURE
    if due_day == today:
        return DueBucket.TODAY
    return DueBucket.LATE


def matches_filter(
    due_at: DueInput,
    now: datetime | None,
    due_filter: DueFilter | str,
    tz: tzinfo | None = None,
) -> bool:
    """Whether a due value passes the given filter."""
    selected = DueFilter(due_filter)
    if selected == DueFilter.ALL:
        return True

    result = bucket(due_at, now, tz)
    if selected == DueFilter.LATE_TODAY:
        return result in (DueBucket.TODAY, DueBucket.LATE)
    return result == _EXACT_FILTERS[selected]


def hides_future(due_filter: DueFilter | str) -> bool:
    """Whether future-dated tasks are hidden under this filter.

    Only ``all`` and ``not_due_yet`` show future tasks.
    """
    return DueFilter(due_filter) not in (DueFilter.ALL, DueFilter.NOT_DUE_YET)
