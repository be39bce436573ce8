"""Normalization of loosely formatted spreadsheet cell values.

Punch-clock exports disagree on header names, date layouts and time
precision. These helpers turn whatever a cell holds into the canonical
forms stored on a time entry: positive integer employee ids, ``YYYY-MM-DD``
dates and ``HH:MM:SS`` times.
"""
import re
from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Sequence

from app.exceptions import ValidationError
from app.models.employee import MAX_EMPLOYEE_ID

EMPLOYEE_ID_ALIASES = ("Employee ID", "EmployeeID", "employee_id", "ID")
DATE_ALIASES = ("Date",)
CLOCK_IN_ALIASES = ("Clock In", "ClockIn", "clock_in", "Check In")
CLOCK_OUT_ALIASES = ("Clock Out", "ClockOut", "clock_out", "Check Out")

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DASH_DATE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_TIME = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_DIGITS = re.compile(r"^[0-9]+$")


def is_blank(value: Any) -> bool:
    """Return True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())


def _build_date(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def _parse_slash_date(first: str, second: str, year: str) -> Optional[date]:
    # Two-digit components read as DD/MM/YYYY, shorter ones as MM/DD/YYYY.
    # Whichever reading is impossible falls back to the other one.
    if len(first) == 2 and len(second) == 2:
        readings = ((second, first), (first, second))
    else:
        readings = ((first, second), (second, first))

    for month, day in readings:
        parsed = _build_date(year, month, day)
        if parsed:
            return parsed
    return None


def normalize_date(value: Any, field: str = "Date") -> str:
    """
    Normalize a date cell to ``YYYY-MM-DD``.

    Args:
        value: Raw cell value (string, date or datetime)
        field: Field name used in error messages

    Returns:
        ISO formatted date string

    Raises:
        ValidationError: If the value is not a supported date format

    Examples:
        >>> normalize_date("22/10/2025")
        '2025-10-22'
        >>> normalize_date("10/22/2025")
        '2025-10-22'
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = "" if value is None else str(value).strip()
    parsed = None

    match = _ISO_DATE.match(text)
    if match:
        parsed = _build_date(*match.groups())
    else:
        match = _SLASH_DATE.match(text)
        if match:
            parsed = _parse_slash_date(*match.groups())
        else:
            match = _DASH_DATE.match(text)
            if match:
                day, month, year = match.groups()
                parsed = _build_date(year, month, day)

    if parsed is None:
        raise ValidationError(
            f"Invalid {field} format: {text}. "
            "Expected YYYY-MM-DD, DD/MM/YYYY, MM/DD/YYYY or DD-MM-YYYY"
        )

    return parsed.isoformat()


def normalize_time(value: Any, field: str = "Time") -> str:
    """
    Normalize a time cell to ``HH:MM:SS``.

    Accepts ``H:MM``, ``HH:MM``, ``H:MM:SS`` and ``HH:MM:SS`` strings as well
    as native time/datetime cell values.

    Raises:
        ValidationError: If the value is not a valid time of day

    Examples:
        >>> normalize_time("8:30")
        '08:30:00'
    """
    if isinstance(value, datetime):
        return value.time().strftime("%H:%M:%S")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")

    text = "" if value is None else str(value).strip()
    match = _TIME.match(text)
    if not match:
        raise ValidationError(
            f"Invalid {field} format: {text}. Expected HH:MM:SS or HH:MM"
        )

    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValidationError(f"Invalid {field} value: {text}")

    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def normalize_employee_id(value: Any) -> int:
    """Normalize an employee id cell to a positive integer."""
    employee_id = None

    if isinstance(value, bool):
        employee_id = None
    elif isinstance(value, int):
        employee_id = value
    elif isinstance(value, float) and value.is_integer():
        employee_id = int(value)
    elif isinstance(value, str) and _DIGITS.match(value.strip()):
        employee_id = int(value.strip())

    if employee_id is None or not 0 < employee_id <= MAX_EMPLOYEE_ID:
        raise ValidationError(f"Invalid Employee ID: {value}")

    return employee_id


def resolve_field(row: Mapping[Any, Any], aliases: Sequence[str]) -> Any:
    """
    Look up a logical field in a row keyed by header names.

    Headers are compared case-insensitively; aliases are tried in order and
    the first one holding a non-empty value wins.

    Returns:
        The cell value (strings stripped), or None if no alias matched
    """
    for alias in aliases:
        wanted = alias.lower()
        for header, value in row.items():
            if header is None or str(header).strip().lower() != wanted:
                continue
            if not is_blank(value):
                return value.strip() if isinstance(value, str) else value
    return None


def ensure_iso_date(value: Any, field: str = "date") -> str:
    """
    Check that a value is exactly ``YYYY-MM-DD`` and a real calendar date.

    Used for query bounds, where no other layout is accepted.
    """
    match = _ISO_DATE.match(value) if isinstance(value, str) else None
    if not match or _build_date(*match.groups()) is None:
        raise ValidationError(f"Invalid {field}: {value}. Expected YYYY-MM-DD")
    return value
