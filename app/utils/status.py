"""Status classification for time entries."""
from datetime import time
from typing import Any

from app.exceptions import ValidationError
from app.models.time_entry import TimeEntryStatus
from app.utils.normalize import is_blank, normalize_time


def _as_time(value: Any) -> time:
    return time.fromisoformat(normalize_time(value))


def classify_status(clock_in: Any, clock_out: Any) -> TimeEntryStatus:
    """
    Derive the status of a time entry from its clock times.

    - INCOMPLETE when either clock time is missing or blank
    - INVALID when clock out cannot be read as a time strictly after
      clock in on the same day
    - COMPLETE otherwise

    Never raises.

    Examples:
        >>> classify_status("09:00:00", None).value
        'INCOMPLETE'
        >>> classify_status("09:00:00", "08:00:00").value
        'INVALID'
        >>> classify_status("09:00:00", "17:30:00").value
        'COMPLETE'
    """
    if is_blank(clock_in) or is_blank(clock_out):
        return TimeEntryStatus.INCOMPLETE

    try:
        start = _as_time(clock_in)
        end = _as_time(clock_out)
    except (ValidationError, TypeError, ValueError):
        return TimeEntryStatus.INVALID

    if end <= start:
        return TimeEntryStatus.INVALID

    return TimeEntryStatus.COMPLETE
