from placetrail.core.time import is_iso_date, is_time_in_window, normalize_hhmm, start_time


def test_start_time_of_single_time_and_ranges():
    assert start_time("08:05") == "08:05"
    assert start_time("8:05") == "08:05"
    assert start_time("11:33 to 16:01") == "11:33"
    assert start_time("11:33 a 16:01") == "11:33"
    assert start_time("11:33-16:01") == "11:33"
    assert start_time("14:30:59") == "14:30"


def test_start_time_rejects_garbage():
    assert start_time("") is None
    assert start_time(None) is None
    assert start_time("morning") is None
    assert normalize_hhmm("25:00") is None


def test_is_iso_date():
    assert is_iso_date("2025-01-01")
    assert not is_iso_date("01/01/2025")
    assert not is_iso_date("")


def test_time_window_is_inclusive():
    assert is_time_in_window("09:00", "09:00", "10:00")
    assert is_time_in_window("10:00 to 12:00", "09:00", "10:00")
    assert not is_time_in_window("10:01", "09:00", "10:00")
    assert not is_time_in_window("", "09:00", "10:00")
