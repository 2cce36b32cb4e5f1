"""
Session continuity for the tutor.

Remembers the problem each student is working on so a reload or a new
login resumes straight into it. The pointer is independent of the mistake
archive: a problem can be the last session without being archived.
"""

from __future__ import annotations

from typing import Optional

from feynman.core.models import Problem
from feynman.storage.repository import TutorRepository


class SessionContinuityStore:
    """Stores at most one in-progress Problem per user."""

    def __init__(self, repository: TutorRepository):
        self.repository = repository

    def save_last_session(self, user_id: str, problem: Optional[Problem]) -> None:
        """Overwrite the pointer, or delete it when problem is None."""
        if problem is None:
            self.repository.delete_last_session(user_id)
        else:
            self.repository.save_last_session(user_id, problem)

    def get_last_session(self, user_id: str) -> Optional[Problem]:
        return self.repository.load_last_session(user_id)

    def users_with_open_session(self) -> set[str]:
        return self.repository.last_session_user_ids()
