"""Application services."""

from swiftnote.application.services.note_repository import NoteRepository

__all__ = ["NoteRepository"]
