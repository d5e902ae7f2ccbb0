"""Tests for the application entry point."""

import json
import logging
from pathlib import Path

import pytest

from swiftnote.__main__ import configure_logging, main, resolve_config
from swiftnote.config import LoggingConfig


class TestConfigureLogging:
    """configure_logging tests."""

    def test_none_keeps_defaults(self) -> None:
        root = logging.getLogger()
        level = root.level

        configure_logging(None)

        assert root.level == level

    def test_sets_levels(self) -> None:
        root = logging.getLogger()
        original = root.level
        try:
            configure_logging(
                LoggingConfig(level="debug", loggers={"swiftnote.test": "error"})
            )

            assert root.level == logging.DEBUG
            assert logging.getLogger("swiftnote.test").level == logging.ERROR
        finally:
            root.setLevel(original)


class TestResolveConfig:
    """resolve_config tests."""

    def test_db_without_config_file(self, tmp_path: Path) -> None:
        config = resolve_config(tmp_path / "missing.yaml", "notes.db")

        assert config.database.path == "notes.db"
        assert config.logging is None

    def test_db_overrides_config_file(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text("database:\n  path: from-file.db\n")

        config = resolve_config(config_path, "override.db")

        assert config.database.path == "override.db"

    def test_missing_config_without_db(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            resolve_config(tmp_path / "missing.yaml", None)


class TestMain:
    """End-to-end runs against a temporary database."""

    async def test_create_then_list(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        db = str(tmp_path / "notes.db")
        config = str(tmp_path / "missing.yaml")

        assert await main(["--config", config, "--db", db, "create", "Hello"]) == 0
        capsys.readouterr()

        code = await main(["--config", config, "--db", db, "--format", "json", "list"])

        notes = json.loads(capsys.readouterr().out)
        assert code == 0
        assert [note["title"] for note in notes] == ["Hello"]

    async def test_show_unknown_note(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        db = str(tmp_path / "notes.db")
        args = ["--config", str(tmp_path / "none.yaml"), "--db", db]

        code = await main([*args, "show", "00000000-0000-0000-0000-000000000000"])

        assert code == 1
        assert "not found" in capsys.readouterr().err

    async def test_missing_config(self, tmp_path: Path) -> None:
        code = await main(["--config", str(tmp_path / "none.yaml"), "list"])

        assert code == 1
