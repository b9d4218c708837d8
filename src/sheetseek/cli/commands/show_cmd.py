from __future__ import annotations

import argparse

from rich.table import Table

from sheetseek.cli import services
from sheetseek.cli.context import CLIContext
from sheetseek.core.errors import NotFoundError


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("show", help="Show the reconstructed sheets of a file")
    parser.add_argument("file_id", type=int)
    parser.add_argument("--sheet", help="Only show this sheet")
    parser.add_argument("--limit", type=int, default=50, help="Rows to show per sheet")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    services.require_initialized_project(ctx)
    view = services.sheet_reconstructor(ctx).reconstruct(args.file_id)

    sheets = view.sheets
    if args.sheet:
        if args.sheet not in sheets:
            raise NotFoundError(f"Sheet not found in file {args.file_id}: {args.sheet}")
        sheets = {args.sheet: sheets[args.sheet]}

    for sheet_name, grid in sheets.items():
        width = max((len(row) for row in grid.rows), default=0)
        header = grid.rows[0] if grid.rows else []
        table = Table(title=f"{view.file.original_name} / {sheet_name} ({len(grid.rows)} rows)")
        table.add_column("Row", justify="right")
        for idx in range(width):
            table.add_column(header[idx] if idx < len(header) and header[idx] else f"Column {idx + 1}")
        for row_number, row in list(zip(grid.row_numbers, grid.rows))[1 : args.limit + 1]:
            padded = row + [""] * (width - len(row))
            table.add_row(str(row_number), *padded)
        ctx.console.print(table)
    return 0
