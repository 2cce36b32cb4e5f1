"""
Storage Module - Local persistence.

Components:
- kv_store: Key-value adapters (SQLite, in-memory)
- repository: Typed get/put per logical collection
"""

from .kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .repository import (
    CURRENT_USER_KEY,
    DATA_KEY,
    LAST_SESSION_PREFIX,
    USERS_KEY,
    TutorRepository,
)

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "TutorRepository",
    "USERS_KEY",
    "DATA_KEY",
    "CURRENT_USER_KEY",
    "LAST_SESSION_PREFIX",
]
