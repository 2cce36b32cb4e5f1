"""
TutorApp: orchestration layer for the tutoring client.

Holds the in-memory copies (current user, active problem, active mistake
list, selected student, achievement overlay) and writes them back to the
stores as they change:

- the active mistake list is re-saved on every change while a student is
  logged in (coaches only ever view archives),
- the active problem is re-saved as the session pointer on every change
  while a student is in ProblemActive,
- the explicit back action deletes the session pointer.

Navigation itself is delegated to the pure `transition` function.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from loguru import logger

from feynman.accounts.credential_store import CredentialStore, LoginResult
from feynman.accounts.roster_io import (
    RosterImport,
    build_student_report,
    parse_roster,
    write_student_report_csv,
)
from feynman.core.errors import NotFound, ProviderFailure, ValidationFailure
from feynman.core.models import Attachment, Message, Problem, Sender, User, now_ms
from feynman.core.topics import resolve_topic
from feynman.storage.kv_store import SQLiteKeyValueStore
from feynman.storage.repository import TutorRepository
from feynman.study.analytics import filter_students
from feynman.study.mistake_store import MistakeArchiveStore
from feynman.study.progression import Progression, progression_for
from feynman.study.session_store import SessionContinuityStore
from feynman.tutor.prompts import WELCOME_MESSAGE
from feynman.tutor.provider import GeminiProvider, TutorProvider

from .machine import (
    AppState,
    BackToTopics,
    ChangePassword,
    CoachAnalytics,
    CoachDashboard,
    DashboardReturned,
    Event,
    LoggedIn,
    LoggedOut,
    Login,
    MistakeNotebook,
    NotebookOpened,
    PasswordChanged,
    ProblemActive,
    ProblemOpened,
    StudentSelected,
    TopicSelection,
    transition,
)

# Typed by a stuck student; any match archives the active problem
GIVE_UP_KEYWORDS = (
    "不会", "太难", "不懂", "放弃", "没思路", "很难", "不知道",
    "help", "give up", "too hard", "no idea", "don't know",
)

WELCOME_MESSAGE_ID = "welcome"


def is_giving_up(text: str) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in GIVE_UP_KEYWORDS)


class TutorApp:
    """Orchestrator for stores, provider and navigation."""

    def __init__(
        self,
        credentials: CredentialStore,
        mistakes: MistakeArchiveStore,
        sessions: SessionContinuityStore,
        provider: TutorProvider,
        rng: random.Random | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.credentials = credentials
        self.mistakes = mistakes
        self.sessions = sessions
        self.provider = provider
        self.rng = rng or random.Random()
        self.clock = clock

        self.state: AppState = Login()
        self.user: User | None = None
        self.current_problem: Problem | None = None
        self.active_mistakes: list[Problem] = []
        self.selected_student: User | None = None
        self.achievements: Progression | None = None
        self.previous_login: int | None = None
        self.loading = False

    @classmethod
    def from_settings(cls, settings) -> "TutorApp":
        """Wire SQLite-backed stores and the Gemini provider from settings."""
        repository = TutorRepository(SQLiteKeyValueStore(settings.database_path))
        return cls(
            credentials=CredentialStore(
                repository, min_password_length=settings.min_password_length
            ),
            mistakes=MistakeArchiveStore(repository),
            sessions=SessionContinuityStore(repository),
            provider=GeminiProvider(
                api_key=settings.gemini_api_key,
                model_name=settings.ai_model,
                temperature=settings.tutor_temperature,
            ),
        )

    # =========================================================================
    # State helpers
    # =========================================================================

    def _apply(self, event: Event) -> AppState:
        previous = self.state
        self.state = transition(self.state, event)
        logger.debug(f"{type(previous).__name__} --{type(event).__name__}--> {self.state}")
        return self.state

    def _require_state(self, *states: type) -> None:
        if not isinstance(self.state, states):
            expected = " or ".join(s.__name__ for s in states)
            raise ValidationFailure(
                f"Action requires {expected}, current state is {type(self.state).__name__}"
            )

    def _require_user(self) -> User:
        if self.user is None:
            raise ValidationFailure("No user is logged in")
        return self.user

    @property
    def is_student(self) -> bool:
        return self.user is not None and self.user.is_student

    def _set_mistakes(self, problems: list[Problem]) -> None:
        self.active_mistakes = problems
        if self.is_student and not isinstance(self.state, Login):
            self.mistakes.save_mistakes(self.user.id, problems)

    def _set_current_problem(self, problem: Problem) -> None:
        self.current_problem = problem
        if self.is_student and isinstance(self.state, ProblemActive):
            self.sessions.save_last_session(self.user.id, problem)

    def is_saved(self, problem_id: str | None = None) -> bool:
        if problem_id is None:
            if self.current_problem is None:
                return False
            problem_id = self.current_problem.id
        return any(m.id == problem_id for m in self.active_mistakes)

    # =========================================================================
    # Authentication
    # =========================================================================

    def start(self) -> AppState:
        """
        Process start: seed default accounts and resume a stored session.

        A resumed session never shows the achievement overlay.
        """
        self.credentials.bootstrap()
        user = self.credentials.current_user()
        if user is not None:
            logger.info(f"Resuming session for {user.username}")
            self._on_login_success(user, previous_login=None)
        return self.state

    def login(self, username: str, password: str) -> LoginResult:
        """
        Raises:
            NotFound, InvalidCredential: From the credential store
        """
        self._require_state(Login)
        result = self.credentials.login(username, password)
        self._on_login_success(result.user, previous_login=result.previous_login)
        return result

    def _on_login_success(self, user: User, previous_login: int | None) -> None:
        self.user = user
        self.previous_login = previous_login

        if user.is_first_login:
            self._apply(LoggedIn(role=user.role, first_login=True))
            return

        resume_id = self._load_role_data(user)
        if user.is_student and previous_login is not None:
            self.achievements = progression_for(self.active_mistakes, user.login_count)
        self._apply(LoggedIn(role=user.role, first_login=False, resume_problem_id=resume_id))
        self._after_entry()

    def _load_role_data(self, user: User) -> str | None:
        """Load a student's archive and session pointer; return the pointer id."""
        if not user.is_student:
            return None
        self.active_mistakes = self.mistakes.get_mistakes(user.id)
        last_session = self.sessions.get_last_session(user.id)
        if last_session is None:
            return None
        self.current_problem = last_session
        return last_session.id

    def _after_entry(self) -> None:
        if isinstance(self.state, ProblemActive) and self.current_problem is not None:
            self._seed_welcome()

    def change_password(self, new_password: str, confirmation: str) -> User:
        """
        Mandatory rotation, then dispatch to the role entry state.

        Raises:
            ValidationFailure: Password rules
        """
        self._require_state(ChangePassword)
        user = self._require_user()
        updated = self.credentials.change_password(user.id, new_password, confirmation)

        refreshed = self.credentials.current_user() or updated
        self.user = refreshed
        self.previous_login = None
        resume_id = self._load_role_data(refreshed)
        self._apply(PasswordChanged(role=refreshed.role, resume_problem_id=resume_id))
        self._after_entry()
        return refreshed

    def logout(self) -> AppState:
        """Return to Login and drop all role-scoped in-memory data."""
        self.credentials.logout()
        self.user = None
        self.current_problem = None
        self.active_mistakes = []
        self.selected_student = None
        self.achievements = None
        self.previous_login = None
        return self._apply(LoggedOut())

    def dismiss_achievements(self) -> None:
        self.achievements = None

    @property
    def progression(self) -> Progression | None:
        """Progression for the logged-in student."""
        if not self.is_student:
            return None
        return progression_for(self.active_mistakes, self.user.login_count)

    # =========================================================================
    # Student flow
    # =========================================================================

    async def select_topic(self, topic: str) -> Optional[Problem]:
        """
        Generate a problem for topic and make it active.

        The random-choice label is resolved here, before generation, and the
        resolved topic is what the problem carries.

        Returns:
            The new problem, or None if the user navigated away meanwhile

        Raises:
            ProviderFailure: The provider raised; state stays TopicSelection
        """
        self._require_state(TopicSelection)
        user = self._require_user()
        resolved = resolve_topic(topic, self.rng)

        self.loading = True
        try:
            problem = await self.provider.generate_problem(resolved)
        except Exception as e:
            logger.error(f"Problem generation raised: {e}")
            raise ProviderFailure(
                "Unable to generate a problem. Check the network connection or API key."
            ) from e
        finally:
            self.loading = False

        if self.user is not user or not isinstance(self.state, TopicSelection):
            logger.info("Discarding generated problem: view changed")
            return None

        problem = problem.model_copy(update={"topic": resolved})
        self._open_problem(problem)
        return problem

    def _open_problem(self, problem: Problem) -> None:
        self._apply(ProblemOpened(problem.id))
        self._set_current_problem(problem)
        self._seed_welcome()

    def _seed_welcome(self) -> None:
        if not self.current_problem.chat_history:
            welcome = Message(id=WELCOME_MESSAGE_ID, sender=Sender.ASSISTANT, text=WELCOME_MESSAGE)
            self.update_chat([welcome])

    def toggle_mistake(self) -> bool:
        """
        Add the active problem to the archive, or remove it if present.

        No-op for non-students. Returns whether the problem is now saved.
        """
        if self.current_problem is None or not self.is_student:
            return False

        problem_id = self.current_problem.id
        if self.is_saved(problem_id):
            self._set_mistakes([m for m in self.active_mistakes if m.id != problem_id])
            return False

        archived = self.current_problem.archived_copy(self.clock())
        self._set_mistakes([archived, *self.active_mistakes])
        return True

    def save_current_problem(self) -> bool:
        """Archive the active problem if not already archived. Idempotent."""
        if self.current_problem is None or not self.is_student:
            return False
        if self.is_saved():
            return False
        archived = self.current_problem.archived_copy(self.clock())
        self._set_mistakes([archived, *self.active_mistakes])
        logger.info(f"Auto-saved problem {archived.id}")
        return True

    def update_chat(self, messages: list[Message]) -> None:
        """
        Replace the active problem's chat history.

        An archived copy of the same problem picks up the new history too,
        keeping its archive timestamp.
        """
        if self.current_problem is None:
            return
        updated = self.current_problem.with_chat(messages)
        self._set_current_problem(updated)

        if self.is_saved(updated.id):
            self._set_mistakes([
                updated.model_copy(update={"timestamp": m.timestamp}) if m.id == updated.id else m
                for m in self.active_mistakes
            ])

    async def send_message(
        self, text: str, attachment: Optional[Attachment] = None
    ) -> Optional[Message]:
        """
        Send student work to the tutor and append the reply.

        Returns:
            The assistant message, or None if the student left the problem
            before the reply arrived

        Raises:
            ValidationFailure: Empty message
        """
        self._require_state(ProblemActive)
        if not text.strip() and attachment is None:
            raise ValidationFailure("Message is empty")

        if attachment is None and is_giving_up(text):
            self.save_current_problem()

        problem = self.current_problem
        history = list(problem.chat_history or [])
        user_message = Message(
            id=str(self.clock()), sender=Sender.USER, text=text, attachment=attachment
        )
        self.update_chat([*history, user_message])

        reply_text = await self.provider.evaluate(problem, history, attachment, text)

        if (
            self.current_problem is None
            or self.current_problem.id != problem.id
            or not isinstance(self.state, ProblemActive)
        ):
            logger.info(f"Discarding reply for {problem.id}: view changed")
            return None

        reply = Message(id=str(self.clock() + 1), sender=Sender.ASSISTANT, text=reply_text)
        self.update_chat([*(self.current_problem.chat_history or []), reply])
        return reply

    def back_to_topics(self) -> AppState:
        """
        Explicit back action.

        Leaving ProblemActive this way deletes the session pointer.
        """
        self._require_state(ProblemActive, MistakeNotebook)
        if isinstance(self.state, ProblemActive):
            user = self._require_user()
            self.sessions.save_last_session(user.id, None)
            self.current_problem = None
        return self._apply(BackToTopics())

    def open_notebook(self) -> AppState:
        return self._apply(NotebookOpened())

    def open_archived_problem(self, problem_id: str) -> Problem:
        """
        Resume an archived problem; overwrites the session pointer.

        Raises:
            NotFound: No archived problem with that id
        """
        self._require_state(MistakeNotebook)
        problem = next((m for m in self.active_mistakes if m.id == problem_id), None)
        if problem is None:
            raise NotFound(f"Problem '{problem_id}' is not in the notebook")
        self._open_problem(problem)
        return self.current_problem

    def delete_mistake(self, problem_id: str) -> None:
        self._require_state(MistakeNotebook)
        self._set_mistakes([m for m in self.active_mistakes if m.id != problem_id])

    # =========================================================================
    # Coach flow
    # =========================================================================

    def list_students(self, search: str = "") -> list[User]:
        self._require_state(CoachDashboard, CoachAnalytics)
        return filter_students(self.credentials.list_students(), search)

    def students_with_open_problem(self) -> set[str]:
        """Student ids that have an unfinished problem to resume."""
        self._require_state(CoachDashboard, CoachAnalytics)
        return self.sessions.users_with_open_session()

    def select_student(self, student_id: str) -> User:
        """
        Raises:
            NotFound: Unknown student id
        """
        self._require_state(CoachDashboard)
        student = self.credentials.get_user(student_id)
        self.selected_student = student
        self.active_mistakes = self.mistakes.get_mistakes(student.id)
        self._apply(StudentSelected(student.id))
        return student

    def return_to_dashboard(self) -> AppState:
        self._require_state(CoachAnalytics)
        self.selected_student = None
        self.active_mistakes = []
        return self._apply(DashboardReturned())

    def reset_student_password(self, student_id: str) -> User:
        self._require_state(CoachDashboard, CoachAnalytics)
        return self.credentials.reset_password_to_username(student_id)

    def import_roster(self, rows: Iterable[Sequence[str]]) -> tuple[int, RosterImport]:
        """
        Register students from tabular rows.

        Returns:
            (number registered, parsed import with rejected rows)
        """
        self._require_state(CoachDashboard)
        parsed = parse_roster(rows)
        if not parsed.entries:
            return 0, parsed
        return self.credentials.register_batch(parsed.entries), parsed

    def export_report(self, path: Path) -> int:
        self._require_state(CoachDashboard, CoachAnalytics)
        rows = build_student_report(self.credentials.list_students(), self.mistakes.get_mistakes)
        return write_student_report_csv(path, rows)

    async def study_report(self) -> str:
        """AI weakness report for the selected student's archive."""
        self._require_state(CoachAnalytics)
        return await self.provider.summarize(list(self.active_mistakes))
