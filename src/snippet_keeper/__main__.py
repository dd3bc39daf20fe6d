"""CLI エントリーポイント"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import AppConfig
from .domain.errors import RemoteFetchError, SnippetValidationError
from .infrastructure.confirmation_prompt import ConsoleConfirmationPrompt
from .infrastructure.key_value_store import JsonFileKeyValueStore
from .infrastructure.playlist_client import PlaylistClient
from .orchestration.snippet_manager import SnippetManager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="snippet-keeper", description="Manage local code snippets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List local snippets")
    subparsers.add_parser("new", help="Create a blank snippet")
    subparsers.add_parser("playlist", help="Show the default snippets for this host")

    duplicate = subparsers.add_parser("duplicate", help="Duplicate a snippet")
    duplicate.add_argument("snippet_id")

    import_ = subparsers.add_parser("import", help="Add a snippet from a JSON record file")
    import_.add_argument("path", type=Path)

    delete = subparsers.add_parser("delete", help="Delete a snippet")
    delete.add_argument("snippet_id")
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    delete_all = subparsers.add_parser("delete-all", help="Delete all local snippets")
    delete_all.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    return parser


def build_manager(config: AppConfig) -> SnippetManager:
    """設定から Ready 状態の SnippetManager を構築"""
    return SnippetManager(
        context=config.host_context(),
        store_factory=lambda namespace: JsonFileKeyValueStore(namespace, config.storage_dir),
        confirmation_prompt=ConsoleConfirmationPrompt(),
        playlist_client=PlaylistClient(config.playlist_base_url, timeout=config.request_timeout),
    ).initialize()


async def run_command(args: argparse.Namespace, manager: SnippetManager) -> int:
    """
    サブコマンドを実行

    Returns:
        int: 終了コード（0: 成功またはユーザーによる中断, 1: 失敗）
    """
    if args.command == "list":
        for snippet in manager.get_local():
            marker = " (unsaved)" if snippet.is_dirty else ""
            print(f"{snippet.id}\t{snippet.meta.name}{marker}")
        return 0

    if args.command == "new":
        snippet = await manager.new()
        print(f"{snippet.id}\t{snippet.meta.name}")
        return 0

    if args.command == "import":
        record = json.loads(args.path.read_text(encoding="utf-8"))
        snippet = await manager.import_snippet(record)
        print(f"{snippet.id}\t{snippet.meta.name}")
        return 0

    if args.command == "playlist":
        gallery = await manager.get_playlist()
        for group in gallery.groups:
            print(group.name)
            for item in group.items:
                print(f"  {item.name} [{item.gist_id}] {item.description}")
        return 0

    if args.command == "delete-all":
        result = await manager.delete_all(ask_for_confirmation=not args.yes)
        if result.aborted:
            logger.info("Deletion cancelled")
        return 0

    snippet = await manager.find(args.snippet_id)
    if snippet.is_empty:
        logger.error(f"Snippet not found: {args.snippet_id}")
        return 1

    if args.command == "duplicate":
        copy = await manager.duplicate(snippet)
        print(f"{copy.id}\t{copy.meta.name}")
        return 0

    # delete
    result = await manager.delete(snippet, ask_for_confirmation=not args.yes)
    result.raise_for_status()
    if result.aborted:
        logger.info("Deletion cancelled")
    return 0


def main(argv: Optional[List[str]] = None):
    """
    CLI エントリーポイント

    Usage:
        python -m snippet_keeper <command>

    Exit codes:
        0: 成功（ユーザーによる中断を含む）
        1: 失敗
    """
    # ロギング設定
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    args = build_parser().parse_args(argv)

    try:
        config = AppConfig.from_env()
        manager = build_manager(config)
        exit_code = asyncio.run(run_command(args, manager))
    except RemoteFetchError as e:
        for message in e.messages:
            logger.error(message)
        sys.exit(1)
    except SnippetValidationError as e:
        logger.error(f"Invalid snippet: {str(e)}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
