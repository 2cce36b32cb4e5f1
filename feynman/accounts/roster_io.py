"""
Roster import and student report export.

Import rows are tabular: the first row is a header, matched
case-insensitively, and each column accepts one of two header names.
Rows missing a name or username are returned as rejections rather than
raised, so one bad row does not abort the whole import.
"""

from __future__ import annotations

import csv
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Sequence

from loguru import logger

from feynman.core.errors import ValidationFailure
from feynman.core.models import Problem, User
from feynman.core.topics import CONCRETE_TOPICS

from .credential_store import RosterEntry

NAME_HEADERS = ("name", "姓名")
USERNAME_HEADERS = ("username", "账号")


@dataclass(frozen=True)
class RowRejection:
    """A data row that could not be turned into a RosterEntry."""

    row_number: int  # 1-based, header is row 1
    reason: str


@dataclass
class RosterImport:
    """Parsed import: accepted entries plus rejected rows."""

    entries: list[RosterEntry] = field(default_factory=list)
    rejected: list[RowRejection] = field(default_factory=list)


def _find_column(headers: list[str], synonyms: Sequence[str]) -> int | None:
    for synonym in synonyms:
        if synonym in headers:
            return headers.index(synonym)
    return None


def parse_roster(rows: Iterable[Sequence[str]]) -> RosterImport:
    """
    Parse header + data rows into roster entries.

    Raises:
        ValidationFailure: Empty input or missing name/username column
    """
    iterator = iter(rows)
    try:
        header_row = next(iterator)
    except StopIteration:
        raise ValidationFailure("Roster file is empty") from None

    headers = [str(cell).strip().lower() for cell in header_row]
    name_idx = _find_column(headers, NAME_HEADERS)
    username_idx = _find_column(headers, USERNAME_HEADERS)
    if name_idx is None or username_idx is None:
        raise ValidationFailure(
            "Header row must contain 'name' (or '姓名') and 'username' (or '账号') columns"
        )

    result = RosterImport()
    for row_number, row in enumerate(iterator, start=2):
        if not any(str(cell).strip() for cell in row):
            continue
        name = _cell(row, name_idx)
        username = _cell(row, username_idx)
        if not name:
            result.rejected.append(RowRejection(row_number, "missing name"))
        elif not username:
            result.rejected.append(RowRejection(row_number, "missing username"))
        else:
            result.entries.append(RosterEntry(name=name, username=username))

    logger.debug(
        f"Parsed roster: {len(result.entries)} entries, {len(result.rejected)} rejected"
    )
    return result


def _cell(row: Sequence[str], index: int) -> str:
    return str(row[index]).strip() if index < len(row) else ""


def read_roster_csv(path: Path) -> RosterImport:
    """Parse a roster from a CSV file."""
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return parse_roster(csv.reader(f))


# =============================================================================
# Export
# =============================================================================


def build_student_report(
    students: Iterable[User],
    mistakes_for: Callable[[str], list[Problem]],
) -> list[dict[str, object]]:
    """
    One row per student: identity, activation status, mistake totals per topic.

    Topics outside the catalog (older archives) get their own columns.
    """
    rows: list[dict[str, object]] = []
    for student in students:
        mistakes = mistakes_for(student.id)
        counts = Counter(m.topic for m in mistakes)
        row: dict[str, object] = {
            "name": student.name,
            "username": student.username,
            "status": "inactive" if student.is_first_login else "active",
            "total_mistakes": len(mistakes),
        }
        for topic in CONCRETE_TOPICS:
            row[topic] = counts.pop(topic, 0)
        row.update(counts)
        rows.append(row)
    return rows


def write_student_report_csv(path: Path, rows: list[dict[str, object]]) -> int:
    """Write report rows to CSV. Returns the number of data rows written."""
    fieldnames = ["name", "username", "status", "total_mistakes", *CONCRETE_TOPICS]
    for row in rows:
        for key in row:
            if key not in fieldnames:
                fieldnames.append(key)

    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, restval=0)
        writer.writeheader()
        writer.writerows(rows)

    logger.info(f"Wrote {len(rows)} student row(s) to {path}")
    return len(rows)
