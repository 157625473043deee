from solarimport.calendar_days import is_valid, parse_ym


def test_april_thirtyone_invalid():
    assert not is_valid("202604", 31)
    assert is_valid("202604", 30)


def test_feb_leap_year():
    assert is_valid("202402", 29)
    assert not is_valid("202502", 29)
    assert is_valid("202402", 28)


def test_march_thirty_one():
    assert is_valid("202603", 31)


def test_bad_ym():
    assert not is_valid("20260", 1)
    assert not is_valid("202613", 1)
    assert not is_valid("XXXX01", 1)


def test_day_zero_invalid():
    assert not is_valid("202603", 0)


def test_century_leap_rules():
    assert is_valid("200002", 29)
    assert not is_valid("190002", 29)


def test_parse_ym_values():
    assert parse_ym("202604") == (2026, 4)
    assert parse_ym("202600") is None
    assert parse_ym("2026041") is None