"""Per-user mistake archives."""

from __future__ import annotations

from loguru import logger

from feynman.core.models import Problem, UserData
from feynman.storage.repository import TutorRepository


class MistakeArchiveStore:
    """
    Full-replace storage of each user's saved problems.

    Ordering and de-duplication are the caller's job; the store writes
    exactly the sequence it is given.
    """

    def __init__(self, repository: TutorRepository):
        self.repository = repository

    def get_mistakes(self, user_id: str) -> list[Problem]:
        for record in self.repository.load_user_data():
            if record.user_id == user_id:
                return list(record.mistakes)
        return []

    def save_mistakes(self, user_id: str, problems: list[Problem]) -> None:
        data = self.repository.load_user_data()
        for i, record in enumerate(data):
            if record.user_id == user_id:
                data[i] = UserData(user_id=user_id, mistakes=list(problems))
                break
        else:
            data.append(UserData(user_id=user_id, mistakes=list(problems)))

        self.repository.save_user_data(data)
        logger.debug(f"Saved {len(problems)} mistake(s) for {user_id}")
