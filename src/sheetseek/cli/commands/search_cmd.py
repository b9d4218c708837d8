from __future__ import annotations

import argparse

from rich.table import Table

from sheetseek.cli import services
from sheetseek.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("search", help="Find rows containing every term")
    parser.add_argument("terms", nargs="+", help="Terms; each must occur in a matching row")
    parser.add_argument("--max-cells", type=int, default=8, help="Cells to show per row")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    services.require_initialized_project(ctx)
    results = services.search_service(ctx).search(list(args.terms))

    table = Table(title=f"Matches ({len(results)})")
    table.add_column("File")
    table.add_column("Sheet")
    table.add_column("Row", justify="right")
    table.add_column("Cells", overflow="fold")

    max_cells = max(1, int(args.max_cells))
    for result in results:
        shown = [cell for cell in result.cells if cell][:max_cells]
        table.add_row(
            f"{result.original_name} (#{result.file_id})",
            result.sheet_name,
            str(result.row_number),
            " | ".join(shown),
        )

    ctx.console.print(table)
    return 0
