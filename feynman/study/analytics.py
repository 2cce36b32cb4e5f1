"""Coach-side views over student archives."""

from __future__ import annotations

from typing import Iterable

from feynman.core.models import Problem, User
from feynman.core.topics import CONCRETE_TOPICS


def topic_distribution(mistakes: Iterable[Problem]) -> list[tuple[str, int]]:
    """
    Mistake counts per topic, most frequent first.

    Catalog topics start at zero; topics not in the catalog are counted too.
    Topics with no mistakes are omitted.
    """
    counts: dict[str, int] = {topic: 0 for topic in CONCRETE_TOPICS}
    for problem in mistakes:
        counts[problem.topic] = counts.get(problem.topic, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [(topic, count) for topic, count in ranked if count > 0]


def filter_students(students: Iterable[User], term: str) -> list[User]:
    """Case-insensitive search over name and username."""
    students = list(students)
    needle = term.strip().lower()
    if not needle:
        return students
    return [
        s for s in students
        if needle in s.name.lower() or needle in s.username.lower()
    ]
