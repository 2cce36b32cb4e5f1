"""
Navigation Module - Application flow.

Components:
- machine: Pure (state, event) -> state transition function
- app: TutorApp orchestrator wiring stores, provider and navigation
"""

from .app import GIVE_UP_KEYWORDS, TutorApp, is_giving_up
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
    entry_state,
    transition,
)

__all__ = [
    "TutorApp",
    "GIVE_UP_KEYWORDS",
    "is_giving_up",
    # States
    "AppState",
    "Login",
    "ChangePassword",
    "TopicSelection",
    "ProblemActive",
    "MistakeNotebook",
    "CoachDashboard",
    "CoachAnalytics",
    # Events
    "Event",
    "LoggedIn",
    "PasswordChanged",
    "LoggedOut",
    "ProblemOpened",
    "BackToTopics",
    "NotebookOpened",
    "StudentSelected",
    "DashboardReturned",
    # Functions
    "entry_state",
    "transition",
]
