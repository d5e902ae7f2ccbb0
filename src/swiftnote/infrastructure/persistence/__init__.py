"""Persistence infrastructure."""

from swiftnote.infrastructure.persistence.database import DatabaseManager
from swiftnote.infrastructure.persistence.exceptions import (
    DatabaseError,
    InvalidColumnError,
    PersistenceError,
)
from swiftnote.infrastructure.persistence.models import NoteModel
from swiftnote.infrastructure.persistence.note_store import SQLiteNoteStore

__all__ = [
    "DatabaseError",
    "DatabaseManager",
    "InvalidColumnError",
    "NoteModel",
    "PersistenceError",
    "SQLiteNoteStore",
]
