from __future__ import annotations

import argparse

from rich.table import Table

from sheetseek.cli import services
from sheetseek.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("files", help="List uploaded workbooks")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    services.require_initialized_project(ctx)
    files = services.file_service(ctx).list_files()

    table = Table(title=f"Files ({len(files)})")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Uploaded")
    table.add_column("Stored as", overflow="fold")

    for f in files:
        table.add_row(str(f.id), f.original_name, str(f.size_bytes), f.created_at, f.stored_name)

    ctx.console.print(table)
    return 0
