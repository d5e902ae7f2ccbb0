"""Domain services."""

from swiftnote.domain.services.query_pipeline import apply_query, sort_notes
from swiftnote.domain.services.tag_index import collect_tags, tag_usage, tags_by_usage

__all__ = [
    "apply_query",
    "collect_tags",
    "sort_notes",
    "tag_usage",
    "tags_by_usage",
]
