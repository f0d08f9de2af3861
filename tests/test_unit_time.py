import time
from datetime import datetime, timedelta, timezone

import pytest

from adrewards.utils.time import local_day_bounds, to_utc

UTC = timezone.utc


@pytest.fixture()
def us_eastern(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset unavailable on this platform")
    # POSIX rule string; needs no tz database on disk.
    monkeypatch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_local_day_bounds_regular_day(us_eastern):
    start, end = local_day_bounds(datetime(2025, 6, 15, 16, 0, tzinfo=UTC))
    assert to_utc(start) == datetime(2025, 6, 15, 4, 0, tzinfo=UTC)
    assert to_utc(end) == datetime(2025, 6, 16, 4, 0, tzinfo=UTC)


def test_local_day_bounds_spring_forward_is_23_hours(us_eastern):
    start, end = local_day_bounds(datetime(2025, 3, 9, 17, 0, tzinfo=UTC))
    assert to_utc(start) == datetime(2025, 3, 9, 5, 0, tzinfo=UTC)
    assert to_utc(end) == datetime(2025, 3, 10, 4, 0, tzinfo=UTC)
    assert to_utc(end) - to_utc(start) == timedelta(hours=23)


def test_local_day_bounds_fall_back_is_25_hours(us_eastern):
    start, end = local_day_bounds(datetime(2025, 11, 2, 17, 0, tzinfo=UTC))
    assert to_utc(start) == datetime(2025, 11, 2, 4, 0, tzinfo=UTC)
    assert to_utc(end) == datetime(2025, 11, 3, 5, 0, tzinfo=UTC)


def test_local_day_bounds_explicit_tz():
    tz = timezone(timedelta(hours=2))
    start, end = local_day_bounds(datetime(2025, 6, 14, 23, 30, tzinfo=UTC), tz)
    assert start == datetime(2025, 6, 15, 0, 0, tzinfo=tz)
    assert end == datetime(2025, 6, 16, 0, 0, tzinfo=tz)
