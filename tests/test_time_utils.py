from datetime import date, timedelta

from backend.leaddesk.core.time import end_of_day, start_of_day, utc_now


def test_utc_now_is_timezone_aware():
    now = utc_now()
    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_day_bounds_cover_whole_day():
    day = date(2024, 3, 15)
    start = start_of_day(day)
    end = end_of_day(day)
    assert start.date() == day and end.date() == day
    assert (start.hour, start.minute) == (0, 0)
    assert (end.hour, end.minute, end.second) == (23, 59, 59)
    assert end + timedelta(microseconds=1) == start_of_day(day + timedelta(days=1))
