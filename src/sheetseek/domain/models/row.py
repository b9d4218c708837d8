from __future__ import annotations

from dataclasses import dataclass, field

from sheetseek.domain.models.file import WorkbookFile


@dataclass(slots=True)
class SheetRow:
    file_id: int
    sheet_name: str
    row_number: int
    cells: list[str]
    search_text: str
    id: int | None = None


@dataclass(slots=True)
class SearchResult:
    id: int
    file_id: int
    original_name: str
    sheet_name: str
    row_number: int
    cells: list[str]
    search_text: str


@dataclass(slots=True)
class SheetGrid:
    rows: list[list[str]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)


@dataclass(slots=True)
class WorkbookView:
    file: WorkbookFile
    sheets: dict[str, SheetGrid] = field(default_factory=dict)
