"""User administration: the user table, its filters, CSV export and summary line."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from typing import Iterable, Optional, TextIO

ALL = "全部"
ACTIVE = "活跃"
DISABLED = "禁用"

CSV_HEADER = ("用户ID", "姓名", "角色", "状态", "最后登录")

_SAMPLE_USERS = (
    "001|艾希|访客|活跃|2025-06-19 14:30",
    "002|亚瑟|访客|活跃|2025-06-19 13:45",
    "003|亏桑提|客服|活跃|2025-06-19 15:20",
    "004|夏侯惇|客服|活跃|2025-06-19 12:10",
    "005|司马昭|管理员|活跃|2025-06-19 16:00",
    "006|孙思邈|访客|活跃|2025-06-19 09:30",
    "007|扁鹊|访客|活跃|2025-06-19 09:30",
    "008|艾克|访客|活跃|2025-06-19 09:30",
    "009|安妮|访客|活跃|2025-06-19 09:30",
    "010|塞纳|访客|活跃|2025-06-19 09:30",
    "011|卢锡安|访客|活跃|2025-06-19 09:30",
)

# Number of active users the summary line reports for the sample table.
SAMPLE_ACTIVE_USERS = 5


@dataclass(frozen=True)
class UserRow:
    """One row of the user management table."""

    id: str
    name: str
    role: str
    status: str
    last_login: str

    @classmethod
    def parse(cls, line: str) -> "UserRow":
        """Build a row from ``id|name|role|status|last_login``."""
        parts = line.split("|")
        if len(parts) < 5:
            raise ValueError(f"expected 5 fields separated by '|': {line!r}")
        return cls(*parts[:5])

    @property
    def is_active(self) -> bool:
        """Whether the account is shown as active."""
        return self.status == ACTIVE

    def fields(self) -> tuple[str, str, str, str, str]:
        """Return the exported columns in table order."""
        return (self.id, self.name, self.role, self.status, self.last_login)


def sample_users() -> list[UserRow]:
    """Return the rows the user table is filled with."""
    return [UserRow.parse(line) for line in _SAMPLE_USERS]


def _is_all(value: Optional[str]) -> bool:
    return value is None or value == ALL


def filter_users(
    rows: Iterable[UserRow],
    name: Optional[str] = None,
    role: Optional[str] = None,
    status: Optional[str] = None,
) -> list[UserRow]:
    """Return the rows that match a name fragment, a role and a status.

    The name matches case-insensitively as a substring; an empty name, and
    a role or status of None or "全部", match every row.
    """
    needle = (name or "").strip().casefold()
    return [
        row
        for row in rows
        if (not needle or needle in row.name.casefold())
        and (_is_all(role) or row.role == role)
        and (_is_all(status) or row.status == status)
    ]


def write_users_csv(rows: Iterable[UserRow], stream: TextIO) -> int:
    """Write the header and ``rows`` as CSV to ``stream``; return rows written."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    count = 0
    for row in rows:
        writer.writerow(row.fields())
        count += 1
    return count


def user_summary(rows: Iterable[UserRow], active: Optional[int] = None) -> str:
    """Return the statistics line; ``active`` defaults to the rows marked active."""
    listed = list(rows)
    total = len(listed)
    if active is None:
        active = sum(1 for row in listed if row.is_active)
    if not 0 <= active <= total:
        raise ValueError(f"active count {active} outside 0..{total}")
    return f"总用户数: {total} | 活跃用户: {active} | 禁用用户: {total - active}"