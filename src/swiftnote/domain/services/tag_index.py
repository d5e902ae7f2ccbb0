"""Tag usage aggregation over a note collection."""

from collections.abc import Iterable
from typing import Any

from swiftnote.domain.entities.note import Note


def _note_tags(note: Note) -> list[str]:
    """ノートのタグを重複なし・入力順で返す

    文字列でない値や空文字列は無視する。
    """
    tags: Any = getattr(note, "tags", None)
    if not isinstance(tags, (list, tuple)):
        return []
    seen: list[str] = []
    for tag in tags:
        if isinstance(tag, str) and tag and tag not in seen:
            seen.append(tag)
    return seen


def tag_usage(notes: Iterable[Note]) -> dict[str, int]:
    """タグごとの使用数を集計する

    アクティブなノートのみを数える。同じノート内で重複するタグは1回として数える。

    Args:
        notes: ノートのコレクション

    Returns:
        タグ → そのタグを持つアクティブなノート数
    """
    usage: dict[str, int] = {}
    for note in notes:
        if getattr(note, "deleted_at", None) is not None:
            continue
        for tag in _note_tags(note):
            usage[tag] = usage.get(tag, 0) + 1
    return usage


def collect_tags(notes: Iterable[Note]) -> list[str]:
    """コレクションに現れるタグを初出順で返す"""
    tags: dict[str, None] = {}
    for note in notes:
        for tag in _note_tags(note):
            tags.setdefault(tag, None)
    return list(tags)


def tags_by_usage(notes: Iterable[Note]) -> list[str]:
    """タグを使用数の多い順に返す

    使用数が同じタグは初出順を保つ。削除済みノートにしかないタグは含まない。

    Args:
        notes: ノートのコレクション

    Returns:
        タグのリスト
    """
    usage = tag_usage(notes)
    return sorted(usage, key=usage.__getitem__, reverse=True)
