"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from swiftnote.config.models import (
    Config,
    DatabaseConfig,
    LoggingConfig,
    NotesConfig,
    QueryConfig,
)
from swiftnote.domain.entities.query import SortOption


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """dict / list / str を再帰的に走査し、文字列中の環境変数を展開する"""
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _positive_int(data: dict[str, Any], field: str, default: int, parent: str) -> int:
    """正の整数フィールドを読み込む（未指定時は default）"""
    value = data.get(field, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigValidationError(
            f"Field '{parent}.{field}' must be a positive integer, got {value!r}"
        )
    return value


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """任意セクションを dict として取得する"""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigValidationError(f"Section '{name}' must be a mapping")
    return section


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目の欠落・不正な値
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f) or {}

    if not isinstance(raw_data, dict):
        raise ConfigValidationError("Config root must be a mapping")

    # 環境変数を展開
    data = _expand_recursive(raw_data)

    # DatabaseConfig (必須)
    database_data = _validate_required_field(data, "database")
    database = DatabaseConfig(
        path=str(_validate_required_field(database_data, "path", "database")),
    )

    # NotesConfig
    notes_data = _section(data, "notes")
    notes = NotesConfig(
        max_tag_length=_positive_int(
            notes_data, "max_tag_length", NotesConfig.max_tag_length, "notes"
        ),
        max_tags=_positive_int(notes_data, "max_tags", NotesConfig.max_tags, "notes"),
    )

    # QueryConfig
    query_data = _section(data, "query")
    default_sort = query_data.get("default_sort", SortOption.RECENT.value)
    try:
        sort_option = SortOption(default_sort)
    except ValueError:
        choices = ", ".join(option.value for option in SortOption)
        raise ConfigValidationError(
            f"Field 'query.default_sort' must be one of: {choices}"
        ) from None
    query = QueryConfig(
        long_note_min_length=_positive_int(
            query_data,
            "long_note_min_length",
            QueryConfig.long_note_min_length,
            "query",
        ),
        default_sort=sort_option,
    )

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
        )

    return Config(database=database, notes=notes, query=query, logging=logging_config)
