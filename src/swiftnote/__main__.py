"""アプリケーションのエントリポイント"""

import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from swiftnote.application.services import NoteRepository
from swiftnote.config import (
    Config,
    ConfigError,
    DatabaseConfig,
    LoggingConfig,
    load_config,
)
from swiftnote.infrastructure.persistence import DatabaseManager, SQLiteNoteStore
from swiftnote.presentation.cli import parse_args, run_command

# Default logging for early startup
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    if config.loggers:
        for logger_name, logger_level in config.loggers.items():
            individual_level = getattr(logging, logger_level.upper(), logging.INFO)
            logging.getLogger(logger_name).setLevel(individual_level)
            logger.debug(
                "Set logger '%s' to level %s", logger_name, logger_level.upper()
            )


def resolve_config(config_path: Path, database_path: str | None) -> Config:
    """設定ファイルを読み込む

    --db が指定されていて設定ファイルがない場合は既定値で動作する。

    Raises:
        ConfigError: 設定ファイルが不正
        FileNotFoundError: 設定ファイルがなく --db も未指定
    """
    if not config_path.exists() and database_path is not None:
        return Config(database=DatabaseConfig(path=database_path))

    config = load_config(config_path)
    if database_path is not None:
        config.database.path = database_path
    return config


async def main(argv: Sequence[str] | None = None) -> int:
    """コマンドを実行する"""
    args = parse_args(argv)

    try:
        config = resolve_config(Path(args.config), args.db)
    except (ConfigError, FileNotFoundError) as e:
        logger.error("Failed to load config: %s", e)
        return 1

    configure_logging(config.logging)

    db_manager = DatabaseManager(config.database.path)
    try:
        await db_manager.create_tables()
        repository = NoteRepository(SQLiteNoteStore(db_manager.get_session))
        return await run_command(repository, args, config)
    finally:
        await db_manager.close()


def run() -> None:
    """Run the async main function."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    run()
