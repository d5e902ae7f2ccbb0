"""Note entity and record mapping."""

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from swiftnote.domain.exceptions import StoreError, ValidationError

MAX_TAG_LENGTH = 20
MAX_TAGS_PER_NOTE = 10


@dataclass(frozen=True)
class Note:
    """ノートエンティティ

    Attributes:
        id: 永続化サービスが採番する一意識別子
        title: タイトル（トリム済み、空不可）
        body: 本文（トリム済み、空可）
        tags: タグリスト（空リストはタグなしを表す）
        created_at: 作成日時
        updated_at: 更新日時（タイトル・本文・タグの変更時のみ更新）
        deleted_at: 論理削除日時（None の場合はアクティブ）
    """

    id: str
    title: str
    body: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        """バリデーション"""
        if not self.title.strip():
            raise ValueError("Title cannot be empty")
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not precede created_at")

    @property
    def is_active(self) -> bool:
        """アクティブ（未削除）かどうか"""
        return self.deleted_at is None

    @property
    def is_deleted(self) -> bool:
        """論理削除済みかどうか"""
        return self.deleted_at is not None

    @property
    def has_tags(self) -> bool:
        """タグを1つ以上持つかどうか"""
        return len(self.tags) > 0


@dataclass(frozen=True)
class NotePatch:
    """ノートの部分更新内容

    None のフィールドは変更しない。タグを外す場合は空リストを渡す。

    Attributes:
        title: 新しいタイトル
        body: 新しい本文
        tags: 新しいタグリスト
    """

    title: str | None = None
    body: str | None = None
    tags: list[str] | None = None

    @property
    def is_empty(self) -> bool:
        """変更対象のフィールドがないかどうか"""
        return self.title is None and self.body is None and self.tags is None


def validate_tags(
    tags: Iterable[str],
    max_length: int = MAX_TAG_LENGTH,
    max_count: int = MAX_TAGS_PER_NOTE,
) -> list[str]:
    """エディタ側のタグ入力ルールを適用する

    各タグをトリムし、空のタグは取り除く。リポジトリはこのルールを強制しない。

    Args:
        tags: 入力されたタグ
        max_length: タグ1つあたりの最大文字数
        max_count: ノート1件あたりの最大タグ数

    Returns:
        正規化されたタグリスト（入力順を保持）

    Raises:
        ValidationError: 重複・長すぎるタグ・タグ数超過の場合
    """
    result: list[str] = []
    for raw in tags:
        tag = raw.strip()
        if not tag:
            continue
        if len(tag) > max_length:
            raise ValidationError(
                f"Tag '{tag}' must be {max_length} characters or less", field="tags"
            )
        if tag in result:
            raise ValidationError(f"Duplicate tag '{tag}'", field="tags")
        result.append(tag)

    if len(result) > max_count:
        raise ValidationError(
            f"Maximum {max_count} tags allowed per note", field="tags"
        )
    return result


def parse_timestamp(value: Any) -> datetime:
    """タイムスタンプを timezone-aware な datetime に変換する

    Args:
        value: ISO 8601 形式の文字列または datetime

    Returns:
        UTC の datetime（naive な値は UTC とみなす）

    Raises:
        ValueError: 解釈できない値の場合
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, list):
        raise ValueError(f"Invalid tags: {value!r}")
    return [str(tag) for tag in value]


def note_from_record(record: Mapping[str, Any]) -> Note:
    """永続化サービスのレコードを Note エンティティに変換する

    Args:
        record: 永続化サービスが返したレコード

    Returns:
        Note エンティティ

    Raises:
        StoreError: レコードが Note として不正な場合
    """
    try:
        deleted_at = record.get("deleted_at")
        return Note(
            id=str(record["id"]),
            title=str(record["title"]),
            body=str(record.get("body") or ""),
            tags=_parse_tags(record.get("tags")),
            created_at=parse_timestamp(record["created_at"]),
            updated_at=parse_timestamp(record["updated_at"]),
            deleted_at=parse_timestamp(deleted_at) if deleted_at is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Invalid note record from store: {e}") from e
