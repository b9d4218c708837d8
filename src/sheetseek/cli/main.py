from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from sheetseek.cli.commands import (
    delete_cmd,
    download_cmd,
    files_cmd,
    init_cmd,
    search_cmd,
    show_cmd,
    upload_cmd,
    web_cmd,
)
from sheetseek.cli.context import CLIContext
from sheetseek.core.config import load_indexing_config, load_paths
from sheetseek.core.errors import SheetSeekError
from sheetseek.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetseek",
        description="Upload spreadsheets and search their rows",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root to use for .sheetseek data (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    upload_cmd.register(subparsers)
    files_cmd.register(subparsers)
    search_cmd.register(subparsers)
    show_cmd.register(subparsers)
    download_cmd.register(subparsers)
    delete_cmd.register(subparsers)
    web_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    paths = load_paths(args.project_root)
    ctx = CLIContext(paths=paths, console=console, config=load_indexing_config())

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except SheetSeekError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
