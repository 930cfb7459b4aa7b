import csv
import io

import pytest

from cyanla.admin import (
    CSV_HEADER,
    SAMPLE_ACTIVE_USERS,
    UserRow,
    filter_users,
    sample_users,
    user_summary,
    write_users_csv,
)


def test_parse_fields():
    row = UserRow.parse("001|艾希|访客|活跃|2025-06-19 14:30")
    assert row.id == "001"
    assert row.name == "艾希"
    assert row.role == "访客"
    assert row.status == "活跃"
    assert row.last_login == "2025-06-19 14:30"
    assert row.is_active


def test_parse_extra_fields_ignored():
    row = UserRow.parse("a|b|c|d|e|f")
    assert row.fields() == ("a", "b", "c", "d", "e")


def test_parse_too_few_fields():
    with pytest.raises(ValueError):
        UserRow.parse("001|艾希|访客")


def test_sample_users():
    rows = sample_users()
    assert len(rows) == 11
    assert rows[0].name == "艾希"
    assert rows[-1].name == "卢锡安"
    assert [r.id for r in rows] == sorted(r.id for r in rows)


def test_filter_by_role():
    rows = sample_users()
    staff = filter_users(rows, role="客服")
    assert [r.name for r in staff] == ["亏桑提", "夏侯惇"]
    admins = filter_users(rows, role="管理员")
    assert [r.name for r in admins] == ["司马昭"]


def test_filter_all_matches_everything():
    rows = sample_users()
    assert filter_users(rows, name="  ", role="全部", status="全部") == rows
    assert filter_users(rows) == rows


def test_filter_by_name_substring():
    rows = sample_users()
    assert [r.name for r in filter_users(rows, name="艾")] == ["艾希", "艾克"]


def test_filter_name_case_insensitive():
    rows = [UserRow("1", "Alice", "访客", "活跃", ""), UserRow("2", "Bob", "访客", "禁用", "")]
    assert [r.id for r in filter_users(rows, name="aLi")] == ["1"]
    assert [r.id for r in filter_users(rows, status="禁用")] == ["2"]
    assert filter_users(rows, name="alice", status="禁用") == []


def test_write_csv_round_trip():
    rows = sample_users()
    buffer = io.StringIO()
    written = write_users_csv(rows, buffer)
    assert written == len(rows)
    lines = buffer.getvalue().split("\n")
    assert lines[0] == "用户ID,姓名,角色,状态,最后登录"
    parsed = list(csv.reader(io.StringIO(buffer.getvalue())))
    assert tuple(parsed[0]) == CSV_HEADER
    assert [UserRow(*fields) for fields in parsed[1:]] == rows


def test_write_csv_filtered_rows_only():
    rows = filter_users(sample_users(), role="客服")
    buffer = io.StringIO()
    assert write_users_csv(rows, buffer) == 2
    assert buffer.getvalue().count("\n") == 3


def test_summary_for_sample_table():
    text = user_summary(sample_users(), SAMPLE_ACTIVE_USERS)
    assert text == "总用户数: 11 | 活跃用户: 5 | 禁用用户: 6"


def test_summary_counts_active_rows_by_default():
    rows = [UserRow("1", "a", "访客", "活跃", ""), UserRow("2", "b", "访客", "禁用", "")]
    assert user_summary(rows) == "总用户数: 2 | 活跃用户: 1 | 禁用用户: 1"


def test_summary_rejects_impossible_active_count():
    with pytest.raises(ValueError):
        user_summary(sample_users(), 12)