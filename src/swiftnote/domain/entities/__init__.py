"""Domain entities."""

from swiftnote.domain.entities.note import Note, NotePatch, note_from_record
from swiftnote.domain.entities.query import DateFilter, QueryCriteria, SortOption

__all__ = [
    "DateFilter",
    "Note",
    "NotePatch",
    "QueryCriteria",
    "SortOption",
    "note_from_record",
]
