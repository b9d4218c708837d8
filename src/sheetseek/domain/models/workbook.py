from __future__ import annotations

from dataclasses import dataclass, field

from sheetseek.domain.models.cell import Cell


@dataclass(slots=True)
class ParsedSheet:
    name: str
    rows: list[list[Cell]] = field(default_factory=list)
