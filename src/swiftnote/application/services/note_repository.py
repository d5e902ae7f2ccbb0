"""NoteRepository: note lifecycle on top of a NoteStore."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar
from uuid import UUID

from swiftnote.domain.entities.note import Note, NotePatch, note_from_record
from swiftnote.domain.exceptions import (
    NotFoundError,
    PersistenceError,
    StoreError,
    ValidationError,
)
from swiftnote.domain.repositories.note_store import (
    NoteFilter,
    NoteOrder,
    NoteState,
    NoteStore,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NoteRepository:
    """ノートリポジトリ

    永続化サービスへの唯一の書き込み口。入力の検証とレコードの変換のみを行い、
    キャッシュは持たない。各操作は永続化サービスへの1往復で完結する。
    """

    def __init__(
        self,
        store: NoteStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """初期化

        Args:
            store: 永続化サービス
            clock: 現在時刻を返す関数（省略時は UTC の現在時刻）
        """
        self._store = store
        self._clock = clock or _utc_now

    async def list_notes(self) -> list[Note]:
        """アクティブなノートを更新日時の降順で取得

        Returns:
            ノートのリスト

        Raises:
            StoreError: 永続化サービスの失敗
        """
        records = await self._call(
            "list_notes",
            self._store.select(
                NoteFilter(state=NoteState.ACTIVE),
                NoteOrder("updated_at", descending=True),
            ),
        )
        return [note_from_record(record) for record in records]

    async def get(self, note_id: str) -> Note:
        """アクティブなノートを ID で取得

        論理削除済みのノートは見つからないものとして扱う。

        Args:
            note_id: ノートの ID

        Returns:
            ノート

        Raises:
            ValidationError: ID が空または不正な場合
            NotFoundError: アクティブなノートが存在しない場合
            StoreError: 永続化サービスの失敗
        """
        note_id = self._validate_id(note_id)
        records = await self._call(
            "get",
            self._store.select(NoteFilter(note_id=note_id, state=NoteState.ACTIVE)),
        )
        return self._single(note_id, records)

    async def create(
        self,
        title: str,
        body: str = "",
        tags: list[str] | None = None,
    ) -> Note:
        """ノートを作成

        Args:
            title: タイトル（前後の空白は除去）
            body: 本文（前後の空白は除去）
            tags: タグリスト（None または空リストはタグなし）

        Returns:
            採番済みのノート

        Raises:
            ValidationError: タイトルが空の場合
            StoreError: 永続化サービスの失敗
        """
        title = self._validate_title(title)
        record = {
            "title": title,
            "body": (body or "").strip(),
            "tags": list(tags) if tags else None,
            "deleted_at": None,
        }

        created = await self._call("create", self._store.insert(record))
        note = note_from_record(created)
        logger.info("Created note %s", note.id)
        return note

    async def update(self, note_id: str, patch: NotePatch) -> Note:
        """アクティブなノートの内容を更新

        指定されたフィールドのみ変更し、updated_at を現在時刻に進める。
        変更内容が空の場合は書き込まずに現在のノートを返す。

        Args:
            note_id: ノートの ID
            patch: 更新内容

        Returns:
            更新後のノート

        Raises:
            ValidationError: ID が不正、またはタイトルが空になる場合
            NotFoundError: アクティブなノートが存在しない場合
            StoreError: 永続化サービスの失敗
        """
        note_id = self._validate_id(note_id)
        if patch.is_empty:
            return await self.get(note_id)

        values: dict[str, Any] = {}
        if patch.title is not None:
            values["title"] = self._validate_title(patch.title)
        if patch.body is not None:
            values["body"] = patch.body.strip()
        if patch.tags is not None:
            values["tags"] = list(patch.tags) if patch.tags else None
        values["updated_at"] = self._clock()

        records = await self._call(
            "update",
            self._store.update_where(
                NoteFilter(note_id=note_id, state=NoteState.ACTIVE), values
            ),
        )
        note = self._single(note_id, records)
        logger.info(
            "Updated note %s (%s)",
            note_id,
            ", ".join(key for key in values if key != "updated_at"),
        )
        return note

    async def soft_delete(self, note_id: str) -> Note:
        """アクティブなノートを論理削除

        既に削除済みのノートに対しては NotFoundError となる（冪等ではない）。

        Args:
            note_id: ノートの ID

        Returns:
            論理削除後のノート

        Raises:
            ValidationError: ID が不正な場合
            NotFoundError: アクティブなノートが存在しない場合
            StoreError: 永続化サービスの失敗
        """
        note_id = self._validate_id(note_id)
        records = await self._call(
            "soft_delete",
            self._store.update_where(
                NoteFilter(note_id=note_id, state=NoteState.ACTIVE),
                {"deleted_at": self._clock()},
            ),
        )
        note = self._single(note_id, records)
        logger.info("Soft-deleted note %s", note_id)
        return note

    async def restore(self, note_id: str) -> Note:
        """論理削除済みのノートを復元

        updated_at は変更しない。

        Args:
            note_id: ノートの ID

        Returns:
            復元後のノート

        Raises:
            ValidationError: ID が不正な場合
            NotFoundError: 論理削除済みのノートが存在しない場合
            StoreError: 永続化サービスの失敗
        """
        note_id = self._validate_id(note_id)
        records = await self._call(
            "restore",
            self._store.update_where(
                NoteFilter(note_id=note_id, state=NoteState.DELETED),
                {"deleted_at": None},
            ),
        )
        note = self._single(note_id, records)
        logger.info("Restored note %s", note_id)
        return note

    async def purge(self, note_id: str) -> None:
        """ノートを状態に関係なく物理削除

        Args:
            note_id: ノートの ID

        Raises:
            ValidationError: ID が不正な場合
            NotFoundError: ノートが存在しない場合
            StoreError: 永続化サービスの失敗
        """
        note_id = self._validate_id(note_id)
        removed = await self._call(
            "purge", self._store.delete_where(NoteFilter(note_id=note_id))
        )
        if removed == 0:
            raise NotFoundError(note_id)
        logger.info("Purged note %s", note_id)

    async def list_deleted(self) -> list[Note]:
        """論理削除済みのノートを削除日時の降順で取得

        Returns:
            ノートのリスト

        Raises:
            StoreError: 永続化サービスの失敗
        """
        records = await self._call(
            "list_deleted",
            self._store.select(
                NoteFilter(state=NoteState.DELETED),
                NoteOrder("deleted_at", descending=True),
            ),
        )
        return [note_from_record(record) for record in records]

    async def purge_all(self) -> int:
        """すべてのノートを物理削除

        原子性は保証しない。失敗した場合は再取得して状態を確認すること。

        Returns:
            削除した件数

        Raises:
            StoreError: 永続化サービスの失敗
        """
        removed = await self._call(
            "purge_all", self._store.delete_where(NoteFilter())
        )
        logger.warning("Purged all notes (%d removed)", removed)
        return removed

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """永続化サービスを呼び出し、失敗を StoreError に変換する"""
        try:
            return await awaitable
        except (PersistenceError, OSError) as e:
            logger.error("Store failure during %s: %s", operation, e)
            raise StoreError(f"Failed to {operation.replace('_', ' ')}: {e}") from e

    @staticmethod
    def _single(note_id: str, records: list[dict[str, Any]]) -> Note:
        """1件の結果を Note に変換する（0件なら NotFoundError）"""
        if not records:
            raise NotFoundError(note_id)
        return note_from_record(records[0])

    @staticmethod
    def _validate_id(note_id: str) -> str:
        if not isinstance(note_id, str) or not note_id.strip():
            raise ValidationError("Note ID is required", field="id")
        note_id = note_id.strip()
        try:
            canonical = UUID(note_id)
        except ValueError:
            raise ValidationError(
                f"Malformed note ID: {note_id!r}", field="id"
            ) from None
        # 永続化サービスはハイフン区切りの小文字形式で保存している
        return str(canonical)

    @staticmethod
    def _validate_title(title: str) -> str:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        return title
