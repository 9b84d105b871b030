from datetime import date
from decimal import Decimal

import pytest

from expense_tracker import codec
from expense_tracker.core.models import Expense
from expense_tracker.errors import CorruptData, PersistenceError


def _expenses():
    return [
        Expense(1, Decimal("12.50"), "Food", date(2025, 3, 1)),
        Expense(2, Decimal("100"), "Travel", date(2025, 3, 15)),
        Expense(5, Decimal("0.99"), "Coffee & Snacks, misc", date(2025, 4, 2)),
    ]


def test_parse_line_ignores_whitespace():
    expense = codec.parse_line("  3 | 12.5 |  Food  | 2025-03-01 \n", 1)
    assert expense == Expense(3, Decimal("12.5"), "Food", date(2025, 3, 1))


@pytest.mark.parametrize(
    "line",
    [
        "1|12.5|Food",
        "1|12.5|Food|2025-03-01|extra",
        "x|12.5|Food|2025-03-01",
        "0|12.5|Food|2025-03-01",
        "1|abc|Food|2025-03-01",
        "1|-4|Food|2025-03-01",
        "1|12.5||2025-03-01",
        "1|12.5|Food|03/01/2025",
    ],
)
def test_parse_line_rejects_malformed(line):
    with pytest.raises(CorruptData) as info:
        codec.parse_line(line, 7)
    assert info.value.line_number == 7
    assert info.value.line == line


def test_format_line():
    line = codec.format_line(Expense(4, Decimal("12.50"), "Food", date(2025, 3, 1)))
    assert line == "4|12.50|Food|2025-03-01"


def test_round_trip_is_idempotent(tmp_path):
    path = tmp_path / "expenses.txt"
    codec.save_expenses(_expenses(), path)
    first = path.read_text()

    loaded = codec.load_expenses(path)
    assert loaded.problems == []
    assert loaded.expenses == _expenses()

    codec.save_expenses(loaded.expenses, path)
    assert path.read_text() == first


def test_load_missing_file_is_empty(tmp_path):
    result = codec.load_expenses(tmp_path / "missing.txt")
    assert result.expenses == []
    assert result.problems == []


def test_load_empty_file_is_empty(tmp_path):
    path = tmp_path / "expenses.txt"
    path.write_text("")
    assert codec.load_expenses(path).expenses == []


def test_load_skips_and_reports_corrupt_lines(tmp_path):
    path = tmp_path / "expenses.txt"
    path.write_text(
        "1|10|Food|2025-03-01\n"
        "2|oops|Food|2025-03-02\n"
        "\n"
        "3|5|Travel|2025-03-03\n"
    )
    result = codec.load_expenses(path)
    assert [e.id for e in result.expenses] == [1, 3]
    assert len(result.problems) == 1
    assert result.problems[0].line_number == 2
    assert "oops" in str(result.problems[0])


def test_load_reports_duplicate_ids(tmp_path):
    path = tmp_path / "expenses.txt"
    path.write_text("1|10|Food|2025-03-01\n1|20|Food|2025-03-02\n")
    result = codec.load_expenses(path)
    assert [e.amount for e in result.expenses] == [Decimal("10")]
    assert len(result.problems) == 1
    assert "duplicate id" in result.problems[0].reason


def test_save_replaces_atomically_and_leaves_no_temp_files(tmp_path):
    path = tmp_path / "nested" / "expenses.txt"
    codec.save_expenses(_expenses(), path)
    codec.save_expenses(_expenses()[:1], path)
    assert path.read_text() == "1|12.50|Food|2025-03-01\n"
    assert [p.name for p in path.parent.iterdir()] == ["expenses.txt"]


def test_save_failure_keeps_previous_file(tmp_path, monkeypatch):
    path = tmp_path / "expenses.txt"
    codec.save_expenses(_expenses(), path)
    before = path.read_text()

    def boom(*_a, **_k):
        raise OSError("disk full")

    monkeypatch.setattr(codec.os, "replace", boom)
    with pytest.raises(PersistenceError, match="disk full"):
        codec.save_expenses(_expenses()[:1], path)
    assert path.read_text() == before
    assert [p.name for p in tmp_path.iterdir()] == ["expenses.txt"]


def test_metadata_round_trip(tmp_path):
    path = codec.metadata_path(tmp_path / "expenses.txt")
    assert path.name == "expenses.txt.meta.yaml"
    assert codec.load_metadata(path) == codec.Metadata()

    meta = codec.Metadata(next_id=9, budgets={"Food": Decimal("100.50")})
    codec.save_metadata(meta, path)
    assert codec.load_metadata(path) == meta


def test_metadata_rejects_bad_content(tmp_path):
    path = tmp_path / "expenses.txt.meta.yaml"
    path.write_text("budgets:\n  Food: -3\n")
    with pytest.raises(CorruptData):
        codec.load_metadata(path)
    path.write_text("- just\n- a list\n")
    with pytest.raises(CorruptData):
        codec.load_metadata(path)


def test_load_skips_lines_that_are_not_utf8(tmp_path):
    path = tmp_path / "expenses.txt"
    path.write_bytes(
        b"1|10|Food|2025-03-01\n2|5|Caf\xe9|2025-03-02\n3|7|Travel|2025-03-03\n"
    )
    result = codec.load_expenses(path)
    assert [e.id for e in result.expenses] == [1, 3]
    assert len(result.problems) == 1
    problem = result.problems[0]
    assert problem.line_number == 2
    assert "UTF-8" in problem.reason
    assert problem.line == repr(b"2|5|Caf\xe9|2025-03-02")


def test_append_rejected_keeps_raw_lines(tmp_path):
    target = codec.rejected_path(tmp_path / "expenses.txt")
    assert target.name == "expenses.txt.rejected"
    codec.append_rejected([CorruptData("bad", 2, "garbage")], target)
    codec.append_rejected([CorruptData("bad", 5, "1|x|Food|2025-03-01")], target)
    assert target.read_text().splitlines() == ["garbage", "1|x|Food|2025-03-01"]
