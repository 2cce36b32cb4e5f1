"""
Progression and achievements.

Derived purely from a student's archive size, login count and topic
diversity. Every badge predicate is non-decreasing in each input, so the
unlocked set can only grow as the history grows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from feynman.core.models import Problem

PROBLEMS_PER_LEVEL = 3


@dataclass(frozen=True)
class ProgressStats:
    """Inputs to the progression calculation."""

    problem_count: int
    login_count: int
    topic_count: int

    @classmethod
    def from_history(cls, mistakes: Iterable[Problem], login_count: int | None) -> "ProgressStats":
        mistakes = list(mistakes)
        return cls(
            problem_count=len(mistakes),
            login_count=login_count or 1,
            topic_count=len({m.topic for m in mistakes}),
        )


@dataclass(frozen=True)
class Badge:
    """A named achievement unlocked by a monotone predicate."""

    id: str
    name: str
    icon: str
    description: str
    condition: Callable[[ProgressStats], bool]

    def is_unlocked(self, stats: ProgressStats) -> bool:
        return self.condition(stats)


BADGES: tuple[Badge, ...] = (
    Badge("newbie", "First Steps", "🌱", "Registered and logged in for the first time",
          lambda s: s.login_count >= 1),
    Badge("explorer", "Explorer", "🧭", "Practiced 3 different math topics",
          lambda s: s.topic_count >= 3),
    Badge("scholar", "Diligent Scholar", "📚", "Saved more than 5 problems",
          lambda s: s.problem_count >= 5),
    Badge("master", "Problem Master", "🏆", "Saved more than 20 problems",
          lambda s: s.problem_count >= 20),
    Badge("legend", "Feynman Legend", "👑", "Saved more than 50 problems",
          lambda s: s.problem_count >= 50),
)


@dataclass(frozen=True)
class Progression:
    """Level, progress within the level, and badge state."""

    stats: ProgressStats
    level: int
    next_level_threshold: int
    progress_percent: float
    unlocked: tuple[Badge, ...]
    next_badge: Badge | None

    @property
    def unlocked_ids(self) -> frozenset[str]:
        return frozenset(b.id for b in self.unlocked)


def level_for(problem_count: int) -> int:
    return problem_count // PROBLEMS_PER_LEVEL + 1


def calculate_progression(stats: ProgressStats) -> Progression:
    level = level_for(stats.problem_count)
    within = stats.problem_count - (level - 1) * PROBLEMS_PER_LEVEL
    unlocked = tuple(b for b in BADGES if b.is_unlocked(stats))
    next_badge = next((b for b in BADGES if not b.is_unlocked(stats)), None)
    return Progression(
        stats=stats,
        level=level,
        next_level_threshold=level * PROBLEMS_PER_LEVEL,
        progress_percent=min(100.0, within / PROBLEMS_PER_LEVEL * 100),
        unlocked=unlocked,
        next_badge=next_badge,
    )


def progression_for(mistakes: Iterable[Problem], login_count: int | None) -> Progression:
    """Shortcut from a stored history to its progression."""
    return calculate_progression(ProgressStats.from_history(mistakes, login_count))


def format_previous_login(timestamp_ms: int | None) -> str:
    if not timestamp_ms:
        return "This is your first login"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%B %d, %H:%M")
