from __future__ import annotations

import argparse
from pathlib import Path

from sheetseek.cli import services
from sheetseek.cli.context import CLIContext
from sheetseek.core.files import write_bytes_atomic


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("download", help="Write the original uploaded workbook to disk")
    parser.add_argument("file_id", type=int)
    parser.add_argument("--out", type=Path, help="Output path (default: original name in the current directory)")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    services.require_initialized_project(ctx)
    file, data = services.file_service(ctx).read_content(args.file_id)
    target = (args.out or Path(Path(file.original_name).name)).expanduser().resolve()
    write_bytes_atomic(target, data)
    ctx.console.print(f"[green]Wrote[/green] {target} ({len(data)} bytes)")
    return 0
