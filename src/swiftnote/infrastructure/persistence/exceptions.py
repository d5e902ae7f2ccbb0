"""Persistence-related exceptions."""

from swiftnote.domain.exceptions import PersistenceError


class DatabaseError(PersistenceError):
    """Database operation error."""


class InvalidColumnError(PersistenceError):
    """Patch or order refers to a column the notes table does not allow."""


__all__ = ["DatabaseError", "InvalidColumnError", "PersistenceError"]
