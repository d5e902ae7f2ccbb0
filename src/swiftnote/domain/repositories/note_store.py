"""NoteStore Protocol."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class NoteState(Enum):
    """レコードの削除状態による絞り込み"""

    ACTIVE = "active"  # deleted_at IS NULL
    DELETED = "deleted"  # deleted_at IS NOT NULL
    ANY = "any"


@dataclass(frozen=True)
class NoteFilter:
    """レコードの絞り込み条件

    Attributes:
        note_id: 指定した場合、その ID のレコードのみ
        state: 削除状態による絞り込み
    """

    note_id: str | None = None
    state: NoteState = NoteState.ANY


@dataclass(frozen=True)
class NoteOrder:
    """レコードの並び順

    Attributes:
        field: 並び替えに使うカラム名
        descending: 降順かどうか
    """

    field: str
    descending: bool = True


class NoteStore(Protocol):
    """ノートの永続化サービス

    レコードは Note と同じ形の dict でやり取りする。
    該当なしは空の結果で表し、通信・サービスの失敗は PersistenceError を送出する。
    """

    async def select(
        self,
        where: NoteFilter,
        order: NoteOrder | None = None,
    ) -> list[dict[str, Any]]:
        """条件に一致するレコードを取得

        Args:
            where: 絞り込み条件
            order: 並び順（省略時は不定）

        Returns:
            レコードのリスト
        """
        ...

    async def insert(self, record: dict[str, Any]) -> dict[str, Any]:
        """レコードを1件作成

        id / created_at / updated_at はサービス側で採番・設定する。

        Args:
            record: 作成するレコード

        Returns:
            採番済みのレコード
        """
        ...

    async def update_where(
        self,
        where: NoteFilter,
        patch: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """条件に一致するレコードを部分更新

        Args:
            where: 絞り込み条件
            patch: 更新するフィールドと値

        Returns:
            更新後のレコードのリスト（一致なしの場合は空）
        """
        ...

    async def delete_where(self, where: NoteFilter) -> int:
        """条件に一致するレコードを物理削除

        Args:
            where: 絞り込み条件

        Returns:
            削除した件数
        """
        ...
