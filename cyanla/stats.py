"""System statistics: date range checks and the exported statistics report."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Union

REPORT_TITLE = "公司智慧客服系统统计报表"
DATE_RANGE_ERROR = "开始日期不能晚于结束日期！"

# Days the start date falls back to before the end date after a bad range.
DEFAULT_RANGE_DAYS = 7

# Overview figures shown on the statistics cards and written to the report.
OVERVIEW = (
    ("总用户数", "1247"),
    ("活跃用户", "892"),
    ("总对话数", "5431"),
    ("平均响应时间", "2.3秒"),
)

_DATE_FORMAT = "%Y-%m-%d"
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

DateLike = Union[date, datetime]


class DateRangeError(ValueError):
    """Raised when a range starts after it ends; carries a usable start date."""

    def __init__(self, start: DateLike, end: DateLike) -> None:
        super().__init__(DATE_RANGE_ERROR)
        self.start = start
        self.end = end
        self.suggested_start = end - timedelta(days=DEFAULT_RANGE_DAYS)


def check_date_range(start: DateLike, end: DateLike) -> tuple[DateLike, DateLike]:
    """Return ``(start, end)``; raise DateRangeError if start is after end."""
    if start > end:
        raise DateRangeError(start, end)
    return start, end


def stats_report(
    start: DateLike,
    end: DateLike,
    generated_at: Optional[datetime] = None,
) -> str:
    """Return the CSV statistics report for ``start`` to ``end``."""
    when = generated_at if generated_at is not None else datetime.now()
    lines = [
        REPORT_TITLE,
        f"生成时间,{when.strftime(_TIME_FORMAT)}",
        f"统计范围,{start.strftime(_DATE_FORMAT)} 至 {end.strftime(_DATE_FORMAT)}",
        "",
        "概览统计",
        *(f"{name},{value}" for name, value in OVERVIEW),
        "",
    ]
    return "\n".join(lines) + "\n"