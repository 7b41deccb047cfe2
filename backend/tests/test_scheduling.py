from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from taskplanner.services.scheduling import ScheduleCursor, as_utc, schedule_window


@pytest.mark.parametrize("hours", [0, 1, 4, 16, 200])
def test_schedule_window_adds_duration(hours: int) -> None:
    start = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
    window_start, window_end = schedule_window(start, hours)

    assert window_start == start
    assert window_end == start + timedelta(hours=hours)


def test_cursor_places_tasks_back_to_back() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    cursor = ScheduleCursor(start)

    windows = [cursor.place(hours) for hours in (2, 0, 3, 5)]

    for previous, current in zip(windows, windows[1:]):
        assert current[0] == previous[1]
    assert windows[0][0] == start
    assert cursor.position == start + timedelta(hours=10)
    assert cursor.total_hours == 10


def test_schedule_ignores_weekends() -> None:
    friday_evening = datetime(2024, 1, 5, 20, 0, tzinfo=timezone.utc)
    _, end = schedule_window(friday_evening, 30)

    assert end == datetime(2024, 1, 7, 2, 0, tzinfo=timezone.utc)


def test_as_utc_treats_naive_values_as_utc() -> None:
    naive = datetime(2024, 1, 1, 12, 0)
    offset = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))

    assert as_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(offset).hour == 10
