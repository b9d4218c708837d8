from __future__ import annotations

import argparse
from pathlib import Path

from rich.panel import Panel

from sheetseek.cli import services
from sheetseek.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("upload", help="Upload and index a workbook (.xlsx, .xlsm, .xls, .csv)")
    parser.add_argument("path", type=Path)
    parser.add_argument("--name", help="Name to record instead of the file's own name")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    services.require_initialized_project(ctx)
    result = services.upload_service(ctx).upload_path(args.path, original_name=args.name)
    lines = [
        f"File ID: {result.file.id}",
        f"Name: {result.file.original_name}",
        f"Size: {result.file.size_bytes} bytes",
        f"Sheets: {result.sheet_count}",
        f"Rows indexed: {result.row_count}",
    ]
    ctx.console.print(Panel.fit("\n".join(lines), title="File uploaded and indexed"))
    return 0
