"""設定データクラス"""

from dataclasses import dataclass, field

from swiftnote.domain.entities.note import MAX_TAG_LENGTH, MAX_TAGS_PER_NOTE
from swiftnote.domain.entities.query import LONG_NOTE_MIN_LENGTH, SortOption


@dataclass
class DatabaseConfig:
    """データベース設定"""

    path: str


@dataclass
class NotesConfig:
    """ノート入力ルール設定（呼び出し側で適用する）"""

    max_tag_length: int = MAX_TAG_LENGTH
    max_tags: int = MAX_TAGS_PER_NOTE


@dataclass
class QueryConfig:
    """一覧表示の既定値"""

    long_note_min_length: int = LONG_NOTE_MIN_LENGTH
    default_sort: SortOption = SortOption.RECENT


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None


@dataclass
class Config:
    """アプリケーション設定"""

    database: DatabaseConfig
    notes: NotesConfig = field(default_factory=NotesConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    logging: LoggingConfig | None = None
