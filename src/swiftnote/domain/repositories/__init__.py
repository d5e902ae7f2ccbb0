"""Domain repositories."""

from swiftnote.domain.repositories.note_store import (
    NoteFilter,
    NoteOrder,
    NoteState,
    NoteStore,
)

__all__ = ["NoteFilter", "NoteOrder", "NoteState", "NoteStore"]
