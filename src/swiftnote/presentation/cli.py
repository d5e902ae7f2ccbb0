"""Command-line front end for the note repository."""

import argparse
import json
import logging
import sys
from argparse import Namespace
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from swiftnote.application.services.note_repository import NoteRepository
from swiftnote.config.models import Config
from swiftnote.domain.entities.note import Note, NotePatch, validate_tags
from swiftnote.domain.entities.query import DateFilter, QueryCriteria, SortOption
from swiftnote.domain.exceptions import NotFoundError, StoreError, ValidationError
from swiftnote.domain.services.query_pipeline import apply_query
from swiftnote.domain.services.tag_index import tag_usage, tags_by_usage

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USER_ERROR = 1
EXIT_STORE_ERROR = 2


class TableFormatter:
    """シンプルなテキストテーブルフォーマッター"""

    def __init__(self, max_width: int = 50) -> None:
        self._max_width = max_width

    def truncate(self, text: str, width: int | None = None) -> str:
        """テキストを指定幅で切り詰める"""
        width = width or self._max_width
        text = " ".join(text.split())
        if len(text) <= width:
            return text
        return text[: width - 3] + "..."

    def format_datetime(self, dt: datetime | None) -> str:
        """日時をローカル時刻の読みやすい形式に変換"""
        if dt is None:
            return "-"
        return dt.astimezone().strftime("%Y-%m-%d %H:%M")

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: str | None = None,
    ) -> None:
        """テーブルを出力"""
        if title:
            print(f"\n=== {title} ===\n")

        if not rows:
            print("(no notes)")
            return

        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(str(cell)))

        print(" | ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
        print("-+-".join("-" * w for w in widths))
        for row in rows:
            print(" | ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))

        count = len(rows)
        print(f"\n{count} {'note' if count == 1 else 'notes'}")


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def note_to_dict(note: Note) -> dict[str, Any]:
    """JSON 出力用に Note を dict に変換"""
    return {
        "id": note.id,
        "title": note.title,
        "body": note.body,
        "tags": note.tags,
        "created_at": note.created_at.isoformat(),
        "updated_at": note.updated_at.isoformat(),
        "deleted_at": note.deleted_at.isoformat() if note.deleted_at else None,
    }


def print_notes(
    notes: list[Note],
    output_format: str,
    title: str | None = None,
    deleted: bool = False,
) -> None:
    """ノート一覧を出力"""
    if output_format == "json":
        _print_json([note_to_dict(note) for note in notes])
        return

    formatter = TableFormatter()
    rows = [
        [
            note.id,
            formatter.truncate(note.title, 30),
            formatter.truncate(note.body or "No content", 40),
            ", ".join(f"#{tag}" for tag in note.tags[:3])
            + (f" +{len(note.tags) - 3}" if len(note.tags) > 3 else ""),
            formatter.format_datetime(note.deleted_at if deleted else note.updated_at),
        ]
        for note in notes
    ]
    formatter.print_table(
        ["ID", "Title", "Preview", "Tags", "Deleted" if deleted else "Updated"],
        rows,
        title=title,
    )


def print_note(note: Note, output_format: str) -> None:
    """ノート1件を出力"""
    if output_format == "json":
        _print_json(note_to_dict(note))
        return

    formatter = TableFormatter()
    print(f"\n{note.title}\n")
    if note.tags:
        print(" ".join(f"#{tag}" for tag in note.tags))
    print(f"Created: {formatter.format_datetime(note.created_at)}")
    print(f"Updated: {formatter.format_datetime(note.updated_at)}")
    print(f"ID:      {note.id}\n")
    print(note.body or "No content")


def build_criteria(args: Namespace, config: Config) -> QueryCriteria:
    """list コマンドの引数から QueryCriteria を組み立てる"""
    sort_by = SortOption(args.sort) if args.sort else config.query.default_sort
    return QueryCriteria(
        search=args.search or "",
        sort_by=sort_by,
        date_filter=DateFilter(args.date),
        selected_tags=tuple(args.tag or ()),
        with_tags_only=args.tagged,
        long_notes_only=args.long,
        long_note_min_length=config.query.long_note_min_length,
    )


async def _list(repo: NoteRepository, args: Namespace, config: Config) -> None:
    criteria = build_criteria(args, config)
    notes = await repo.list_notes()
    result = apply_query(notes, criteria)
    print_notes(result, args.format, title="Notes")
    if criteria.has_active_filters and args.format == "table":
        summary = criteria.describe()
        line = f"Filtered: {len(result)} of {len(notes)}"
        print(f"{line} ({summary})" if summary else line)


async def _show(repo: NoteRepository, args: Namespace, config: Config) -> None:
    print_note(await repo.get(args.id), args.format)


def _validated_tags(tags: list[str], config: Config) -> list[str]:
    return validate_tags(tags, config.notes.max_tag_length, config.notes.max_tags)


async def _create(repo: NoteRepository, args: Namespace, config: Config) -> None:
    tags = _validated_tags(args.tag or [], config)
    note = await repo.create(args.title, args.body or "", tags or None)
    print_note(note, args.format)


async def _edit(repo: NoteRepository, args: Namespace, config: Config) -> None:
    tags: list[str] | None = None
    if args.clear_tags:
        tags = []
    elif args.tag is not None:
        tags = _validated_tags(args.tag, config)
    note = await repo.update(
        args.id, NotePatch(title=args.title, body=args.body, tags=tags)
    )
    print_note(note, args.format)


async def _delete(repo: NoteRepository, args: Namespace, config: Config) -> None:
    note = await repo.soft_delete(args.id)
    print(f"Moved '{note.title}' to trash")


async def _restore(repo: NoteRepository, args: Namespace, config: Config) -> None:
    note = await repo.restore(args.id)
    print(f"Restored '{note.title}'")


async def _purge(repo: NoteRepository, args: Namespace, config: Config) -> None:
    await repo.purge(args.id)
    print(f"Permanently deleted {args.id}")


async def _trash(repo: NoteRepository, args: Namespace, config: Config) -> None:
    print_notes(await repo.list_deleted(), args.format, title="Trash", deleted=True)


async def _tags(repo: NoteRepository, args: Namespace, config: Config) -> None:
    notes = await repo.list_notes()
    usage = tag_usage(notes)
    ordered = tags_by_usage(notes)
    if args.format == "json":
        _print_json({tag: usage[tag] for tag in ordered})
        return
    rows = [[f"#{tag}", str(usage[tag])] for tag in ordered]
    TableFormatter().print_table(["Tag", "Notes"], rows, title="Tags")


async def _purge_all(repo: NoteRepository, args: Namespace, config: Config) -> None:
    if not args.yes:
        raise ValidationError(
            "This permanently deletes all notes. Re-run with --yes to confirm.",
            field="yes",
        )
    removed = await repo.purge_all()
    print(f"Deleted {removed} {'note' if removed == 1 else 'notes'}")


COMMANDS = {
    "list": _list,
    "show": _show,
    "create": _create,
    "edit": _edit,
    "delete": _delete,
    "restore": _restore,
    "purge": _purge,
    "trash": _trash,
    "tags": _tags,
    "purge-all": _purge_all,
}


async def run_command(
    repo: NoteRepository,
    args: Namespace,
    config: Config,
) -> int:
    """サブコマンドを実行し、終了コードを返す

    Args:
        repo: ノートリポジトリ
        args: パース済みの引数
        config: アプリケーション設定

    Returns:
        終了コード（0: 成功、1: 入力・対象の誤り、2: 永続化サービスの失敗）
    """
    handler = COMMANDS[args.command]
    try:
        await handler(repo, args, config)
    except (ValidationError, NotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USER_ERROR
    except StoreError as e:
        logger.debug("Store error in %s", args.command, exc_info=True)
        print(f"Error: {e}. Please try again.", file=sys.stderr)
        return EXIT_STORE_ERROR
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """CLIパーサーを作成"""
    parser = argparse.ArgumentParser(
        prog="swiftnote",
        description="SwiftNote ノート管理",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # 共通オプション
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="config.yaml のパス (default: config.yaml)",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="データベースファイルのパス (config より優先)",
    )
    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="出力形式 (default: table)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="コマンド")

    # list
    list_parser = subparsers.add_parser("list", help="ノート一覧を表示")
    list_parser.add_argument("--search", help="タイトル・本文を検索")
    list_parser.add_argument(
        "--sort",
        choices=[option.value for option in SortOption],
        default=None,
        help="並び順 (default: config の query.default_sort)",
    )
    list_parser.add_argument(
        "--date",
        choices=[option.value for option in DateFilter],
        default=DateFilter.ALL.value,
        help="作成日で絞り込み (default: all)",
    )
    list_parser.add_argument(
        "--tag", action="append", help="タグで絞り込み（複数指定はいずれかに一致）"
    )
    list_parser.add_argument("--tagged", action="store_true", help="タグ付きのみ")
    list_parser.add_argument("--long", action="store_true", help="長文のみ")

    # show
    show_parser = subparsers.add_parser("show", help="ノートを表示")
    show_parser.add_argument("id", help="ノートID")

    # create
    new_parser = subparsers.add_parser("create", help="ノートを作成")
    new_parser.add_argument("title", help="タイトル")
    new_parser.add_argument("--body", default="", help="本文")
    new_parser.add_argument("--tag", action="append", help="タグ（複数指定可）")

    # edit
    edit_parser = subparsers.add_parser("edit", help="ノートを編集")
    edit_parser.add_argument("id", help="ノートID")
    edit_parser.add_argument("--title", help="新しいタイトル")
    edit_parser.add_argument("--body", help="新しい本文")
    tag_group = edit_parser.add_mutually_exclusive_group()
    tag_group.add_argument("--tag", action="append", help="タグを置き換え（複数指定可）")
    tag_group.add_argument("--clear-tags", action="store_true", help="タグをすべて外す")

    # delete / restore / purge
    for name, help_text in (
        ("delete", "ノートをゴミ箱へ移動"),
        ("restore", "ゴミ箱から復元"),
        ("purge", "ノートを完全に削除"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("id", help="ノートID")

    subparsers.add_parser("trash", help="ゴミ箱のノートを表示")
    subparsers.add_parser("tags", help="タグと使用数を表示")

    purge_all_parser = subparsers.add_parser("purge-all", help="すべてのノートを完全に削除")
    purge_all_parser.add_argument("--yes", action="store_true", help="確認を省略")

    return parser


def parse_args(argv: Sequence[str] | None = None) -> Namespace:
    """コマンドライン引数をパースする"""
    return create_parser().parse_args(argv)
