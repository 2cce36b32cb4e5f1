"""
Core Module - Shared record types, errors and topic catalog.

Components:
- models: Persisted records (User, Problem, Message, UserData)
- errors: Exception taxonomy
- topics: Practice topic catalog and random-topic resolution
"""

from .errors import (
    FeynmanError,
    InvalidCredential,
    InvalidTransition,
    NotFound,
    ProviderFailure,
    StorageError,
    ValidationFailure,
)
from .models import (
    Attachment,
    Difficulty,
    Message,
    Problem,
    Sender,
    User,
    UserData,
    UserRole,
    now_ms,
)
from .topics import CONCRETE_TOPICS, RANDOM_TOPIC, TOPICS, resolve_topic

__all__ = [
    # Errors
    "FeynmanError",
    "InvalidCredential",
    "InvalidTransition",
    "NotFound",
    "ProviderFailure",
    "StorageError",
    "ValidationFailure",
    # Records
    "Attachment",
    "Difficulty",
    "Message",
    "Problem",
    "Sender",
    "User",
    "UserData",
    "UserRole",
    "now_ms",
    # Topics
    "CONCRETE_TOPICS",
    "RANDOM_TOPIC",
    "TOPICS",
    "resolve_topic",
]
