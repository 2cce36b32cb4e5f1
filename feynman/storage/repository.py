"""
Typed access to the logical collections stored in the key-value store.

Key layout:
    feynman_users                   -> list[User]
    feynman_data                    -> list[UserData]
    feynman_current_user            -> User (absent when logged out)
    feynman_last_session_<userId>   -> Problem (absent when cleared)

Every method reads or writes a whole value. Callers that modify a
collection must load a fresh snapshot, change it and save it back.
"""

from __future__ import annotations

import json
from typing import Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from feynman.core.errors import StorageError
from feynman.core.models import Problem, User, UserData

from .kv_store import KeyValueStore

USERS_KEY = "feynman_users"
DATA_KEY = "feynman_data"
CURRENT_USER_KEY = "feynman_current_user"
LAST_SESSION_PREFIX = "feynman_last_session_"

_users_adapter = TypeAdapter(list[User])
_data_adapter = TypeAdapter(list[UserData])


class TutorRepository:
    """Repository over a KeyValueStore."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    # =========================================================================
    # Roster
    # =========================================================================

    def load_users(self) -> list[User]:
        raw = self.kv.get(USERS_KEY)
        if raw is None:
            return []
        try:
            return _users_adapter.validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"User roster is corrupted: {e}") from e

    def save_users(self, users: list[User]) -> None:
        self.kv.set(USERS_KEY, _dumps([u.to_json_dict() for u in users]))

    # =========================================================================
    # Mistake archives
    # =========================================================================

    def load_user_data(self) -> list[UserData]:
        raw = self.kv.get(DATA_KEY)
        if raw is None:
            return []
        try:
            return _data_adapter.validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Mistake archive data is corrupted: {e}") from e

    def save_user_data(self, data: list[UserData]) -> None:
        self.kv.set(DATA_KEY, _dumps([d.to_json_dict() for d in data]))

    # =========================================================================
    # Current session identity
    # =========================================================================

    def load_current_user(self) -> Optional[User]:
        raw = self.kv.get(CURRENT_USER_KEY)
        if raw is None:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable session identity")
            return None

    def save_current_user(self, user: User) -> None:
        self.kv.set(CURRENT_USER_KEY, _dumps(user.to_json_dict()))

    def clear_current_user(self) -> None:
        self.kv.delete(CURRENT_USER_KEY)

    # =========================================================================
    # Last active problem
    # =========================================================================

    def load_last_session(self, user_id: str) -> Optional[Problem]:
        raw = self.kv.get(_last_session_key(user_id))
        if raw is None:
            return None
        try:
            return Problem.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Discarding unreadable last session for {user_id}")
            return None

    def save_last_session(self, user_id: str, problem: Problem) -> None:
        self.kv.set(_last_session_key(user_id), _dumps(problem.to_json_dict()))

    def delete_last_session(self, user_id: str) -> None:
        self.kv.delete(_last_session_key(user_id))

    def last_session_user_ids(self) -> set[str]:
        """Ids of users that currently have a last-session pointer."""
        return {key[len(LAST_SESSION_PREFIX):] for key in self.kv.keys(LAST_SESSION_PREFIX)}


def _last_session_key(user_id: str) -> str:
    return f"{LAST_SESSION_PREFIX}{user_id}"


def _dumps(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)
