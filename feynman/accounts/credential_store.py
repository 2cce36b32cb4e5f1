"""
Credential store: user roster, password verification and session identity.

Passwords are stored as an unsalted SHA-256 hex digest and compared by plain
string equality. This is a content digest, not a password KDF, and the
comparison is not constant-time; both are known weaknesses of the local
single-device design.
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from loguru import logger

from feynman.core.errors import InvalidCredential, NotFound, ValidationFailure
from feynman.core.models import User, UserRole, now_ms
from feynman.storage.repository import TutorRepository

COACH_USERNAME = "Coach"
COACH_PASSWORD = "admin123"
TEST_STUDENT_USERNAME = "test"

DEFAULT_MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class RosterEntry:
    """A validated row from a batch registration."""

    name: str
    username: str


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    user: User
    previous_login: int | None  # last_login before this login


class CredentialStore:
    """
    Owns User records and the current-session identity.

    Each instance is bound to one repository, so tests get an isolated
    session context by constructing a store over a fresh key-value store.
    """

    def __init__(
        self,
        repository: TutorRepository,
        clock: Callable[[], int] = now_ms,
        min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
    ):
        self.repository = repository
        self.clock = clock
        self.min_password_length = min_password_length

    # =========================================================================
    # Bootstrap
    # =========================================================================

    def bootstrap(self) -> int:
        """
        Ensure the default coach and test-student accounts exist.

        Existing accounts with the same usernames are left untouched.

        Returns:
            Number of accounts created
        """
        users = self.repository.load_users()
        created = 0

        if not any(u.username == COACH_USERNAME for u in users):
            users.append(
                User(
                    id="admin_default",
                    username=COACH_USERNAME,
                    name="Head Coach",
                    password_hash=hash_password(COACH_PASSWORD),
                    role=UserRole.COACH,
                    is_first_login=False,
                )
            )
            created += 1

        if not any(u.username == TEST_STUDENT_USERNAME for u in users):
            # Seeded without forced rotation so it can be used right away
            users.append(
                User(
                    id="student_test_default",
                    username=TEST_STUDENT_USERNAME,
                    name="Test Student",
                    password_hash=hash_password(TEST_STUDENT_USERNAME),
                    role=UserRole.STUDENT,
                    is_first_login=False,
                )
            )
            created += 1

        if created:
            self.repository.save_users(users)
            logger.info(f"Bootstrap created {created} default account(s)")
        return created

    # =========================================================================
    # Session
    # =========================================================================

    def login(self, username: str, password: str) -> LoginResult:
        """
        Verify credentials and start a session.

        Raises:
            NotFound: No user with that username
            InvalidCredential: Password digest mismatch
        """
        users = self.repository.load_users()
        index = _index_of(users, lambda u: u.username == username)
        if index is None:
            raise NotFound(f"User '{username}' does not exist")

        user = users[index]
        if user.password_hash != hash_password(password):
            raise InvalidCredential("Incorrect password")

        previous_login = user.last_login
        updated = user.model_copy(
            update={
                "last_login": self.clock(),
                "login_count": (user.login_count or 0) + 1,
            }
        )
        users[index] = updated
        self.repository.save_users(users)
        self.repository.save_current_user(updated)

        logger.info(f"User {username} logged in (count={updated.login_count})")
        return LoginResult(user=updated, previous_login=previous_login)

    def logout(self) -> None:
        """Clear the session identity. The roster is not touched."""
        self.repository.clear_current_user()

    def current_user(self) -> Optional[User]:
        return self.repository.load_current_user()

    # =========================================================================
    # Passwords
    # =========================================================================

    def update_password(self, user_id: str, new_password: str) -> User:
        """
        Set a new password and clear the first-login flag.

        Raises:
            NotFound: Unknown user id
        """
        users = self.repository.load_users()
        index = self._require_index(users, user_id)

        updated = users[index].model_copy(
            update={"password_hash": hash_password(new_password), "is_first_login": False}
        )
        users[index] = updated
        self.repository.save_users(users)

        session_user = self.repository.load_current_user()
        if session_user is not None and session_user.id == user_id:
            self.repository.save_current_user(updated)

        logger.info(f"Password updated for {updated.username}")
        return updated

    def validate_new_password(self, new_password: str, confirmation: str) -> None:
        """
        Raises:
            ValidationFailure: Too short, or confirmation differs
        """
        if len(new_password) < self.min_password_length:
            raise ValidationFailure(
                f"Password must be at least {self.min_password_length} characters"
            )
        if new_password != confirmation:
            raise ValidationFailure("Passwords do not match")

    def change_password(self, user_id: str, new_password: str, confirmation: str) -> User:
        """Validate and apply a user-chosen password."""
        self.validate_new_password(new_password, confirmation)
        return self.update_password(user_id, new_password)

    def reset_password_to_username(self, user_id: str) -> User:
        """
        Reset the password to the username and force rotation on next login.

        Raises:
            NotFound: Unknown user id
        """
        users = self.repository.load_users()
        index = self._require_index(users, user_id)

        user = users[index]
        updated = user.model_copy(
            update={"password_hash": hash_password(user.username), "is_first_login": True}
        )
        users[index] = updated
        self.repository.save_users(users)

        logger.info(f"Password reset to username for {user.username}")
        return updated

    # =========================================================================
    # Roster
    # =========================================================================

    def register_batch(self, entries: Iterable[RosterEntry]) -> int:
        """
        Register students with password = username and forced rotation.

        Entries whose username already exists in the roster (as read at call
        start) or earlier in the same batch are skipped.

        Returns:
            Number of users inserted
        """
        current = self.repository.load_users()
        taken = {u.username for u in current}

        new_users: list[User] = []
        for entry in entries:
            if entry.username in taken:
                logger.debug(f"Skipping existing username {entry.username}")
                continue
            taken.add(entry.username)
            new_users.append(
                User(
                    id=f"u_{self.clock()}_{uuid.uuid4().hex[:9]}",
                    username=entry.username,
                    name=entry.name,
                    password_hash=hash_password(entry.username),
                    role=UserRole.STUDENT,
                    is_first_login=True,
                )
            )

        self.repository.save_users(current + new_users)
        logger.info(f"Registered {len(new_users)} student(s)")
        return len(new_users)

    def list_students(self) -> list[User]:
        return [u for u in self.repository.load_users() if u.role == UserRole.STUDENT]

    def get_user(self, user_id: str) -> User:
        users = self.repository.load_users()
        return users[self._require_index(users, user_id)]

    def find_by_username(self, username: str) -> User:
        users = self.repository.load_users()
        index = _index_of(users, lambda u: u.username == username)
        if index is None:
            raise NotFound(f"User '{username}' does not exist")
        return users[index]

    @staticmethod
    def _require_index(users: list[User], user_id: str) -> int:
        index = _index_of(users, lambda u: u.id == user_id)
        if index is None:
            raise NotFound(f"User id '{user_id}' not found")
        return index


def _index_of(users: list[User], predicate: Callable[[User], bool]) -> int | None:
    for i, user in enumerate(users):
        if predicate(user):
            return i
    return None
