import datetime
import pytest
from salah_times.utils.time_utils import (
    parse_time_internal, format_time_12h, format_time_internal, format_remaining, minute_of_day, civil_date_key
)

def test_parse_time_plain_and_with_timezone_suffix():
    assert parse_time_internal("05:12") == datetime.time(5, 12)
    # The provider sometimes appends the UTC offset
    assert parse_time_internal("19:48 (+03)") == datetime.time(19, 48)
    assert parse_time_internal("04:30:00") == datetime.time(4, 30)

@pytest.mark.parametrize("value", [None, "", "N/A", "25:99", "soon"])
def test_parse_time_rejects_garbage(value):
    assert parse_time_internal(value) is None

def test_format_time_12h_edges():
    assert format_time_12h(datetime.time(0, 5)) == "12:05 AM"
    assert format_time_12h(datetime.time(5, 7)) == "5:07 AM"
    assert format_time_12h(datetime.time(12, 30)) == "12:30 PM"
    assert format_time_12h(datetime.time(23, 59)) == "11:59 PM"
    assert format_time_12h(None) == "N/A"

def test_format_time_internal_keeps_24_hour_value():
    assert format_time_internal(datetime.time(17, 4)) == "17:04"

def test_format_remaining():
    assert format_remaining(0) == "0m"
    assert format_remaining(59) == "59m"
    assert format_remaining(60) == "1h 0m"
    assert format_remaining(135) == "2h 15m"

def test_minute_of_day_accepts_time_and_datetime():
    assert minute_of_day(datetime.time(1, 1)) == 61
    assert minute_of_day(datetime.datetime(2024, 3, 15, 23, 59, 59)) == 1439

def test_civil_date_key():
    assert civil_date_key(datetime.date(2024, 3, 5)) == "05-03-2024"
