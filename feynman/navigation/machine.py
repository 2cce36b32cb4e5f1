"""
Navigation state machine.

States and events are small frozen dataclasses; `transition` is a pure
function from (state, event) to the next state. It holds no data beyond
identifiers; the orchestrator in `app.py` performs the store reads and
writes around each transition.

    Login -> ChangePassword* -> CoachDashboard <-> CoachAnalytics
                             -> TopicSelection <-> MistakeNotebook
                                TopicSelection  -> ProblemActive -> TopicSelection

LoggedOut is accepted from every state and always lands on Login.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from feynman.core.errors import InvalidTransition
from feynman.core.models import UserRole

# =============================================================================
# States
# =============================================================================


@dataclass(frozen=True)
class Login:
    pass


@dataclass(frozen=True)
class ChangePassword:
    pass


@dataclass(frozen=True)
class TopicSelection:
    pass


@dataclass(frozen=True)
class ProblemActive:
    problem_id: str


@dataclass(frozen=True)
class MistakeNotebook:
    pass


@dataclass(frozen=True)
class CoachDashboard:
    pass


@dataclass(frozen=True)
class CoachAnalytics:
    student_id: str


AppState = Union[
    Login,
    ChangePassword,
    TopicSelection,
    ProblemActive,
    MistakeNotebook,
    CoachDashboard,
    CoachAnalytics,
]

STUDENT_STATES = (TopicSelection, ProblemActive, MistakeNotebook)

# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class LoggedIn:
    """Credentials accepted (interactive login or silent resume)."""

    role: UserRole
    first_login: bool
    resume_problem_id: str | None = None


@dataclass(frozen=True)
class PasswordChanged:
    """Mandatory rotation finished; dispatch to the role entry state."""

    role: UserRole
    resume_problem_id: str | None = None


@dataclass(frozen=True)
class LoggedOut:
    pass


@dataclass(frozen=True)
class ProblemOpened:
    """A generated problem or an archived one became the active problem."""

    problem_id: str


@dataclass(frozen=True)
class BackToTopics:
    pass


@dataclass(frozen=True)
class NotebookOpened:
    pass


@dataclass(frozen=True)
class StudentSelected:
    student_id: str


@dataclass(frozen=True)
class DashboardReturned:
    pass


Event = Union[
    LoggedIn,
    PasswordChanged,
    LoggedOut,
    ProblemOpened,
    BackToTopics,
    NotebookOpened,
    StudentSelected,
    DashboardReturned,
]

# =============================================================================
# Transition
# =============================================================================


def entry_state(role: UserRole, resume_problem_id: str | None) -> AppState:
    """Role-appropriate landing state after authentication."""
    if role == UserRole.COACH:
        return CoachDashboard()
    if resume_problem_id is not None:
        return ProblemActive(resume_problem_id)
    return TopicSelection()


def transition(state: AppState, event: Event) -> AppState:
    """
    Compute the next state.

    Raises:
        InvalidTransition: The event is not legal in this state
    """
    if isinstance(event, LoggedOut):
        return Login()

    if isinstance(state, Login) and isinstance(event, LoggedIn):
        if event.first_login:
            return ChangePassword()
        return entry_state(event.role, event.resume_problem_id)

    if isinstance(state, ChangePassword) and isinstance(event, PasswordChanged):
        return entry_state(event.role, event.resume_problem_id)

    if isinstance(event, ProblemOpened) and isinstance(
        state, (TopicSelection, MistakeNotebook, ProblemActive)
    ):
        return ProblemActive(event.problem_id)

    if isinstance(event, BackToTopics) and isinstance(state, STUDENT_STATES):
        return TopicSelection()

    if isinstance(state, TopicSelection) and isinstance(event, NotebookOpened):
        return MistakeNotebook()

    if isinstance(state, (CoachDashboard, CoachAnalytics)):
        if isinstance(event, StudentSelected):
            return CoachAnalytics(event.student_id)
        if isinstance(event, DashboardReturned):
            return CoachDashboard()

    raise InvalidTransition(state, event)
