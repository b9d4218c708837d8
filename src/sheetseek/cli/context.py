from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console

from sheetseek.core.config import AppPaths, IndexingConfig


@dataclass(slots=True)
class CLIContext:
    paths: AppPaths
    console: Console
    config: IndexingConfig = field(default_factory=IndexingConfig)
