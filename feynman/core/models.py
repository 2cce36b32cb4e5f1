"""
Persisted record types.

Records serialize to JSON with camelCase keys so the stored layout stays
stable regardless of Python attribute names. Timestamps are epoch
milliseconds.
"""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class Record(BaseModel):
    """Base for all persisted records."""

    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserRole(str, Enum):
    """Account role."""

    STUDENT = "student"
    COACH = "coach"


class Sender(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class User(Record):
    """Identity and credential record."""

    id: str
    username: str
    name: str
    password_hash: str = Field(alias="passwordHash")
    role: UserRole
    is_first_login: bool = Field(alias="isFirstLogin")
    last_login: int | None = Field(default=None, alias="lastLogin")
    login_count: int | None = Field(default=None, alias="loginCount")

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT


class Attachment(Record):
    """Single file attached to a chat message."""

    type: str = "file"  # 'image' | 'file'
    mime_type: str = Field(alias="mimeType")
    data: str  # base64 data URL, or raw text when is_text
    name: str
    is_text: bool = Field(default=False, alias="isText")


class Message(Record):
    """One turn in a problem conversation."""

    id: str
    sender: Sender
    text: str = ""
    attachment: Attachment | None = None


class Problem(Record):
    """A tutoring exercise instance."""

    id: str
    topic: str
    content: str
    source: str | None = None
    feynman_explanation: str | None = Field(default=None, alias="feynmanExplanation")
    standard_solution: str | None = Field(default=None, alias="standardSolution")
    difficulty: Difficulty = Difficulty.MEDIUM
    timestamp: int | None = None
    chat_history: list[Message] | None = Field(default=None, alias="chatHistory")

    def with_chat(self, messages: list[Message]) -> "Problem":
        return self.model_copy(update={"chat_history": list(messages)})

    def archived_copy(self, timestamp: int) -> "Problem":
        return self.model_copy(update={"timestamp": timestamp})


class UserData(Record):
    """Per-user mistake archive."""

    user_id: str = Field(alias="userId")
    mistakes: list[Problem] = Field(default_factory=list)
