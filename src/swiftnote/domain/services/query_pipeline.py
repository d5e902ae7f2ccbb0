"""Search, filter and sort pipeline for the note list.

The pipeline is a pure function of (notes, criteria, now). Stages run in a
fixed order: text, date, tags, tagged-only, length, sort. Malformed fields
on a note never raise; they simply fail the predicates that need them.
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from pyuca import Collator

from swiftnote.domain.entities.note import Note, parse_timestamp
from swiftnote.domain.entities.query import DateFilter, QueryCriteria, SortOption

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

NotePredicate = Callable[[Note], bool]


def _timestamp(value: Any) -> datetime | None:
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _tags(note: Note) -> list[str]:
    tags = getattr(note, "tags", None)
    if not isinstance(tags, (list, tuple)):
        return []
    return [tag for tag in tags if isinstance(tag, str) and tag]


def matches_search(search: str) -> NotePredicate:
    """タイトルまたは本文に検索文字列を含むかの述語を返す"""
    needle = search.casefold()

    def predicate(note: Note) -> bool:
        return (
            needle in _text(getattr(note, "title", None)).casefold()
            or needle in _text(getattr(note, "body", None)).casefold()
        )

    return predicate


def date_threshold(date_filter: DateFilter, now: datetime) -> datetime | None:
    """作成日時の下限を返す

    Args:
        date_filter: 日付フィルタ
        now: 現在時刻

    Returns:
        この時刻以降に作成されたノートを残す。ALL の場合は None。
    """
    if date_filter is DateFilter.TODAY:
        local_now = now.astimezone()
        return local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_filter is DateFilter.THIS_WEEK:
        return now - timedelta(days=7)
    if date_filter is DateFilter.THIS_MONTH:
        return now - timedelta(days=30)
    return None


def created_since(threshold: datetime) -> NotePredicate:
    """threshold 以降に作成されたかの述語を返す

    作成日時を解釈できないノートは除外する。
    """

    def predicate(note: Note) -> bool:
        created_at = _timestamp(getattr(note, "created_at", None))
        return created_at is not None and created_at >= threshold

    return predicate


def has_any_tag(selected: Iterable[str]) -> NotePredicate:
    """選択タグのいずれかを持つかの述語を返す"""
    wanted = set(selected)

    def predicate(note: Note) -> bool:
        return any(tag in wanted for tag in _tags(note))

    return predicate


def is_tagged(note: Note) -> bool:
    return len(_tags(note)) > 0


def is_long(min_length: int) -> NotePredicate:
    """本文が min_length 文字以上かの述語を返す"""

    def predicate(note: Note) -> bool:
        return len(_text(getattr(note, "body", None))) >= min_length

    return predicate


@lru_cache(maxsize=1)
def _collator() -> Collator:
    # DUCET はプロセスごとに1回だけ読み込む
    return Collator()


def _title_key(note: Note) -> tuple[tuple[int, ...], str]:
    title = _text(getattr(note, "title", None))
    return _collator().sort_key(title), title


def _time_key(field: str) -> Callable[[Note], datetime]:
    def key(note: Note) -> datetime:
        return _timestamp(getattr(note, field, None)) or _EARLIEST

    return key


def sort_notes(notes: Iterable[Note], sort_by: SortOption) -> list[Note]:
    """ノートを並び替える

    安定ソートのため、キーが等しいノートは入力順を保つ。

    Args:
        notes: ノートのコレクション
        sort_by: 並び順

    Returns:
        並び替えたノートのリスト
    """
    if sort_by is SortOption.ALPHABETICAL:
        return sorted(notes, key=_title_key)
    if sort_by is SortOption.OLDEST:
        return sorted(notes, key=_time_key("created_at"))
    # RECENT / MOST_EDITED
    return sorted(notes, key=_time_key("updated_at"), reverse=True)


def build_predicates(criteria: QueryCriteria, now: datetime) -> list[NotePredicate]:
    """条件から絞り込みの述語をステージ順に組み立てる"""
    predicates: list[NotePredicate] = []

    if criteria.search.strip():
        predicates.append(matches_search(criteria.search))

    threshold = date_threshold(criteria.date_filter, now)
    if threshold is not None:
        predicates.append(created_since(threshold))

    if criteria.selected_tags:
        predicates.append(has_any_tag(criteria.selected_tags))

    if criteria.with_tags_only:
        predicates.append(is_tagged)

    if criteria.long_notes_only:
        predicates.append(is_long(criteria.long_note_min_length))

    return predicates


def apply_query(
    notes: Iterable[Note],
    criteria: QueryCriteria,
    now: datetime | None = None,
) -> list[Note]:
    """検索・絞り込み・並び替えを適用する

    Args:
        notes: ノートのコレクション（通常はアクティブなノート一覧）
        criteria: 検索条件
        now: 日付フィルタの基準時刻（省略時は現在時刻）

    Returns:
        表示順のノートのリスト
    """
    now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)

    candidates = list(notes)
    for predicate in build_predicates(criteria, now):
        candidates = [note for note in candidates if predicate(note)]

    return sort_notes(candidates, criteria.sort_by)
