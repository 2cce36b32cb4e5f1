"""
Study Module - Student-owned records and derived views.

Components:
- mistake_store: Per-user mistake archives
- session_store: Last active problem per user
- progression: Levels and badges
- analytics: Topic distribution and student search for coaches
"""

from .analytics import filter_students, topic_distribution
from .mistake_store import MistakeArchiveStore
from .progression import (
    BADGES,
    Badge,
    Progression,
    ProgressStats,
    calculate_progression,
    format_previous_login,
    progression_for,
)
from .session_store import SessionContinuityStore

__all__ = [
    "MistakeArchiveStore",
    "SessionContinuityStore",
    "BADGES",
    "Badge",
    "Progression",
    "ProgressStats",
    "calculate_progression",
    "format_previous_login",
    "progression_for",
    "filter_students",
    "topic_distribution",
]
