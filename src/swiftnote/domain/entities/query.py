"""Query criteria for the note list."""

from dataclasses import dataclass
from enum import Enum

LONG_NOTE_MIN_LENGTH = 100


class SortOption(Enum):
    """並び順"""

    RECENT = "recent"
    ALPHABETICAL = "alphabetical"
    OLDEST = "oldest"
    # 編集回数は記録していないため RECENT と同じ並びになる
    MOST_EDITED = "mostEdited"


class DateFilter(Enum):
    """作成日時による絞り込み"""

    ALL = "all"
    TODAY = "today"
    THIS_WEEK = "thisWeek"
    THIS_MONTH = "thisMonth"


SORT_LABELS: dict[SortOption, str] = {
    SortOption.RECENT: "Recent",
    SortOption.ALPHABETICAL: "A-Z",
    SortOption.OLDEST: "Oldest",
    SortOption.MOST_EDITED: "Recent",
}


@dataclass(frozen=True)
class QueryCriteria:
    """ノート一覧の検索・絞り込み・並び替え条件

    Attributes:
        search: 検索文字列（タイトル・本文の部分一致、大文字小文字を区別しない）
        sort_by: 並び順
        date_filter: 作成日時による絞り込み
        selected_tags: 選択中のタグ（いずれかを含むノートを残す）
        with_tags_only: タグ付きノートのみ
        long_notes_only: 長文ノートのみ
        long_note_min_length: 長文とみなす本文の最小文字数
    """

    search: str = ""
    sort_by: SortOption = SortOption.RECENT
    date_filter: DateFilter = DateFilter.ALL
    selected_tags: tuple[str, ...] = ()
    with_tags_only: bool = False
    long_notes_only: bool = False
    long_note_min_length: int = LONG_NOTE_MIN_LENGTH

    @property
    def has_active_filters(self) -> bool:
        """既定値から変更された条件があるかどうか"""
        return (
            self.search.strip() != ""
            or self.date_filter is not DateFilter.ALL
            or len(self.selected_tags) > 0
            or self.with_tags_only
            or self.long_notes_only
            or self.sort_by is not SortOption.RECENT
        )

    def cleared(self) -> "QueryCriteria":
        """すべての条件を既定値に戻した QueryCriteria を返す

        長文の閾値は設定値なので引き継ぐ。
        """
        return QueryCriteria(long_note_min_length=self.long_note_min_length)

    def describe(self) -> str:
        """有効な条件の短い説明文を返す

        Returns:
            "sort: A-Z • tags: a, b... • date: today" のような文字列。
            条件がなければ空文字列。
        """
        parts: list[str] = []
        if self.sort_by is not SortOption.RECENT:
            parts.append(f"sort: {SORT_LABELS[self.sort_by]}")
        if self.selected_tags:
            shown = ", ".join(self.selected_tags[:2])
            suffix = "..." if len(self.selected_tags) > 2 else ""
            parts.append(f"tags: {shown}{suffix}")
        if self.date_filter is not DateFilter.ALL:
            parts.append(f"date: {self.date_filter.value}")
        return " • ".join(parts)
