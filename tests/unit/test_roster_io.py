"""
Unit tests for roster parsing and the student report export.

Run: pytest tests/unit/test_roster_io.py -v
"""

import csv

import pytest

from feynman.accounts.credential_store import RosterEntry
from feynman.accounts.roster_io import (
    build_student_report,
    parse_roster,
    read_roster_csv,
    write_student_report_csv,
)
from feynman.core.errors import ValidationFailure
from feynman.core.models import User, UserRole


class TestParseRoster:
    def test_english_headers_case_insensitive(self):
        parsed = parse_roster([["Name", "USERNAME"], ["Alice", "alice"]])
        assert parsed.entries == [RosterEntry(name="Alice", username="alice")]

    def test_chinese_headers(self):
        parsed = parse_roster([["账号", "姓名"], ["zhang3", "张三"]])
        assert parsed.entries == [RosterEntry(name="张三", username="zhang3")]

    def test_extra_columns_ignored(self):
        parsed = parse_roster([["class", "name", "username"], ["7B", "Bob", "bob"]])
        assert parsed.entries == [RosterEntry(name="Bob", username="bob")]

    def test_cells_are_trimmed(self):
        parsed = parse_roster([["name", "username"], ["  Carol ", " carol  "]])
        assert parsed.entries == [RosterEntry(name="Carol", username="carol")]

    def test_incomplete_rows_rejected_not_raised(self):
        parsed = parse_roster([
            ["name", "username"],
            ["Alice", "alice"],
            ["", "ghost"],
            ["Nobody"],
        ])

        assert [e.username for e in parsed.entries] == ["alice"]
        assert [(r.row_number, r.reason) for r in parsed.rejected] == [
            (3, "missing name"),
            (4, "missing username"),
        ]

    def test_blank_rows_skipped(self):
        parsed = parse_roster([["name", "username"], ["", ""], [], ["Dan", "dan"]])
        assert len(parsed.entries) == 1
        assert parsed.rejected == []

    def test_empty_input(self):
        with pytest.raises(ValidationFailure):
            parse_roster([])

    def test_missing_column(self):
        with pytest.raises(ValidationFailure):
            parse_roster([["name", "email"], ["Alice", "a@example.com"]])

    def test_read_csv_with_bom(self, tmp_path):
        path = tmp_path / "roster.csv"
        path.write_text("\ufeffname,username\nAlice,alice\n", encoding="utf-8")

        assert read_roster_csv(path).entries == [RosterEntry("Alice", "alice")]


class TestStudentReport:
    @pytest.fixture
    def students(self):
        return [
            User(id="s1", username="alice", name="Alice", password_hash="h",
                 role=UserRole.STUDENT, is_first_login=False),
            User(id="s2", username="bob", name="Bob", password_hash="h",
                 role=UserRole.STUDENT, is_first_login=True),
        ]

    def test_build_report(self, students, make_problem):
        archives = {
            "s1": [
                make_problem("a", topic="Analytic Geometry"),
                make_problem("b", topic="Analytic Geometry"),
                make_problem("c", topic="Olympiad Inequalities"),
            ],
        }

        rows = build_student_report(students, lambda uid: archives.get(uid, []))

        assert rows[0]["status"] == "active"
        assert rows[0]["total_mistakes"] == 3
        assert rows[0]["Analytic Geometry"] == 2
        assert rows[0]["Limits & Continuity"] == 0
        assert rows[0]["Olympiad Inequalities"] == 1
        assert rows[1]["status"] == "inactive"
        assert rows[1]["total_mistakes"] == 0

    def test_write_csv(self, students, make_problem, tmp_path):
        archives = {"s1": [make_problem("c", topic="Olympiad Inequalities")]}
        rows = build_student_report(students, lambda uid: archives.get(uid, []))
        path = tmp_path / "report.csv"

        assert write_student_report_csv(path, rows) == 2

        with open(path, encoding="utf-8", newline="") as f:
            written = list(csv.DictReader(f))
        assert written[0]["username"] == "alice"
        assert written[0]["Olympiad Inequalities"] == "1"
        assert written[1]["Olympiad Inequalities"] == "0"
