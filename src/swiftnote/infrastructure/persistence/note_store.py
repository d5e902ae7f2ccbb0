"""SQLite implementation of NoteStore."""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from swiftnote.domain.repositories.note_store import NoteFilter, NoteOrder, NoteState
from swiftnote.infrastructure.persistence.datetime_utils import (
    normalize_optional,
    normalize_to_utc,
)
from swiftnote.infrastructure.persistence.exceptions import (
    DatabaseError,
    InvalidColumnError,
)
from swiftnote.infrastructure.persistence.models import NoteModel

logger = logging.getLogger(__name__)

_WRITABLE_COLUMNS = frozenset({"title", "body", "tags", "updated_at", "deleted_at"})
_ORDERABLE_COLUMNS = frozenset({"title", "created_at", "updated_at", "deleted_at"})


class SQLiteNoteStore:
    """SQLite 版 NoteStore 実装

    notes テーブルに対する select / insert / update_where / delete_where を提供する。
    呼び出しごとに1つの非同期セッションを使う。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def select(
        self,
        where: NoteFilter,
        order: NoteOrder | None = None,
    ) -> list[dict[str, Any]]:
        """条件に一致するレコードを取得

        Args:
            where: 絞り込み条件
            order: 並び順

        Returns:
            レコードのリスト

        Raises:
            DatabaseError: データベース操作に失敗した場合
        """
        stmt = self._filtered(select(NoteModel), where)
        if order is not None:
            if order.field not in _ORDERABLE_COLUMNS:
                raise InvalidColumnError(f"Cannot order notes by '{order.field}'")
            column = getattr(NoteModel, order.field)
            stmt = stmt.order_by(column.desc() if order.descending else column.asc())

        try:
            async with self._session_factory() as session:
                result = await session.exec(stmt)
                return [self._to_record(model) for model in result.all()]
        except SQLAlchemyError as e:
            logger.error("Failed to select notes: %s", e)
            raise DatabaseError(f"Failed to select notes: {e}") from e

    async def insert(self, record: dict[str, Any]) -> dict[str, Any]:
        """レコードを1件作成

        id / created_at / updated_at はここで設定し、渡された値は使わない。

        Args:
            record: 作成するレコード

        Returns:
            採番済みのレコード

        Raises:
            DatabaseError: データベース操作に失敗した場合
        """
        now = datetime.now(timezone.utc)
        model = NoteModel(
            title=record["title"],
            body=record.get("body") or "",
            tags=record.get("tags"),
            created_at=now,
            updated_at=now,
            deleted_at=normalize_optional(record.get("deleted_at")),
        )

        try:
            async with self._session_factory() as session:
                session.add(model)
                await session.commit()
                await session.refresh(model)
                return self._to_record(model)
        except SQLAlchemyError as e:
            logger.error("Failed to insert note: %s", e)
            raise DatabaseError(f"Failed to insert note: {e}") from e

    async def update_where(
        self,
        where: NoteFilter,
        patch: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """条件に一致するレコードを部分更新

        updated_at はレコードの created_at を下限として保存する。

        Args:
            where: 絞り込み条件
            patch: 更新するフィールドと値

        Returns:
            更新後のレコードのリスト（一致なしの場合は空）

        Raises:
            InvalidColumnError: 更新できないカラムが含まれる場合
            DatabaseError: データベース操作に失敗した場合
        """
        unknown = set(patch) - _WRITABLE_COLUMNS
        if unknown:
            raise InvalidColumnError(f"Cannot update columns: {sorted(unknown)}")

        values = {
            key: normalize_to_utc(value) if isinstance(value, datetime) else value
            for key, value in patch.items()
        }

        try:
            async with self._session_factory() as session:
                result = await session.exec(
                    self._filtered(select(NoteModel), where)
                )
                models = list(result.all())
                for model in models:
                    for key, value in values.items():
                        setattr(model, key, value)
                    if isinstance(values.get("updated_at"), datetime):
                        # updated_at は created_at より前にしない
                        model.updated_at = max(
                            values["updated_at"], normalize_to_utc(model.created_at)
                        )
                    session.add(model)
                await session.commit()
                for model in models:
                    await session.refresh(model)
                return [self._to_record(model) for model in models]
        except SQLAlchemyError as e:
            logger.error("Failed to update notes: %s", e)
            raise DatabaseError(f"Failed to update notes: {e}") from e

    async def delete_where(self, where: NoteFilter) -> int:
        """条件に一致するレコードを物理削除

        Args:
            where: 絞り込み条件

        Returns:
            削除した件数

        Raises:
            DatabaseError: データベース操作に失敗した場合
        """
        stmt = self._filtered(delete(NoteModel), where)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount or 0  # type: ignore[union-attr]
        except SQLAlchemyError as e:
            logger.error("Failed to delete notes: %s", e)
            raise DatabaseError(f"Failed to delete notes: {e}") from e

    @staticmethod
    def _filtered(stmt: Any, where: NoteFilter) -> Any:
        """NoteFilter を WHERE 句として文に適用"""
        if where.note_id is not None:
            stmt = stmt.where(NoteModel.id == where.note_id)
        if where.state is NoteState.ACTIVE:
            stmt = stmt.where(NoteModel.deleted_at.is_(None))  # type: ignore[union-attr]
        elif where.state is NoteState.DELETED:
            stmt = stmt.where(NoteModel.deleted_at.is_not(None))  # type: ignore[union-attr]
        return stmt

    @staticmethod
    def _to_record(model: NoteModel) -> dict[str, Any]:
        """NoteModel をレコード（dict）に変換

        Args:
            model: NoteModel インスタンス

        Returns:
            Note と同じ形の dict
        """
        return {
            "id": model.id,
            "title": model.title,
            "body": model.body,
            "tags": list(model.tags) if model.tags is not None else None,
            "created_at": normalize_to_utc(model.created_at),
            "updated_at": normalize_to_utc(model.updated_at),
            "deleted_at": normalize_optional(model.deleted_at),
        }
