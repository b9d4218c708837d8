from __future__ import annotations

import argparse

from sheetseek.cli import services
from sheetseek.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("delete", help="Delete a file, its indexed rows and its stored workbook")
    parser.add_argument("file_id", type=int)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    services.require_initialized_project(ctx)
    result = services.file_service(ctx).delete(args.file_id)
    ctx.console.print(
        f"[green]Deleted[/green] {result.file.original_name} (#{result.file.id}), {result.rows_deleted} rows"
    )
    if not result.binary_deleted:
        ctx.console.print("[yellow]Stored workbook was already gone or could not be removed[/yellow]")
    return 0
