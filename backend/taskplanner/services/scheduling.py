"""Sequential, non-overlapping placement of tasks on a timeline."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Tuple


def schedule_window(cursor: datetime, duration_hours: int) -> Tuple[datetime, datetime]:
    """Return (start, end) for a task that begins at ``cursor``."""
    return cursor, cursor + timedelta(hours=duration_hours)


class ScheduleCursor:
    """Places tasks back to back and tracks the total hours consumed.

    There is no calendar awareness: nights, weekends and holidays are all
    working time.
    """

    def __init__(self, start: datetime):
        self.start = start
        self.position = start
        self.total_hours = 0

    def place(self, duration_hours: int) -> Tuple[datetime, datetime]:
        start, end = schedule_window(self.position, duration_hours)
        self.position = end
        self.total_hours += duration_hours
        return start, end


def as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
