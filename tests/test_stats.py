from datetime import date, datetime, timedelta

import pytest

from cyanla.stats import (
    DATE_RANGE_ERROR,
    DEFAULT_RANGE_DAYS,
    REPORT_TITLE,
    DateRangeError,
    check_date_range,
    stats_report,
)


def test_valid_range_is_returned():
    start, end = date(2024, 1, 8), date(2024, 1, 15)
    assert check_date_range(start, end) == (start, end)


def test_equal_dates_are_accepted():
    day = date(2024, 1, 15)
    assert check_date_range(day, day) == (day, day)


def test_start_after_end_raises():
    start, end = date(2024, 1, 20), date(2024, 1, 15)
    with pytest.raises(DateRangeError) as info:
        check_date_range(start, end)
    assert str(info.value) == DATE_RANGE_ERROR
    assert info.value.suggested_start == end - timedelta(days=DEFAULT_RANGE_DAYS)


def test_range_error_is_value_error():
    with pytest.raises(ValueError):
        check_date_range(date(2024, 2, 1), date(2024, 1, 1))


def test_suggested_start_makes_valid_range():
    end = date(2024, 3, 1)
    with pytest.raises(DateRangeError) as info:
        check_date_range(date(2024, 3, 5), end)
    assert check_date_range(info.value.suggested_start, end)[1] == end


def test_report_header_lines():
    report = stats_report(
        date(2024, 1, 8), date(2024, 1, 15), datetime(2024, 1, 15, 14, 30, 25)
    )
    lines = report.split("\n")
    assert lines[0] == REPORT_TITLE
    assert lines[1] == "生成时间,2024-01-15 14:30:25"
    assert lines[2] == "统计范围,2024-01-08 至 2024-01-15"
    assert lines[3] == ""


def test_report_overview_section():
    report = stats_report(date(2024, 1, 1), date(2024, 1, 2), datetime(2024, 1, 2))
    assert "概览统计\n总用户数,1247\n活跃用户,892\n总对话数,5431\n平均响应时间,2.3秒\n\n" in report
    assert report.endswith("\n\n")


def test_report_accepts_datetimes_for_range():
    report = stats_report(
        datetime(2024, 5, 1, 9, 0), datetime(2024, 5, 7, 18, 0), datetime(2024, 5, 7)
    )
    assert "统计范围,2024-05-01 至 2024-05-07\n" in report


def test_report_defaults_generation_time_to_now():
    before = datetime.now().replace(microsecond=0)
    report = stats_report(date(2024, 1, 1), date(2024, 1, 2))
    after = datetime.now()
    stamp = report.split("\n")[1].split(",", 1)[1]
    generated = datetime.strptime(stamp, "%Y-%m-%d %H:%M:%S")
    assert before <= generated <= after