from __future__ import annotations

import sqlite3

from sheetseek.application.services.file_service import FileService
from sheetseek.core.errors import PersistenceError
from sheetseek.domain.models.row import SheetGrid, WorkbookView
from sheetseek.infrastructure.db.repos.row_repo import RowRepo


class SheetReconstructor:
    """Regroups a file's stored rows into one grid per sheet.

    Blank rows were never stored, so a grid is compacted: it can be shorter
    than the source sheet. Each grid keeps the original row numbers alongside
    its rows for callers that need positions. The first grid row is usually
    the header, but no distinction is made here.
    """

    def __init__(self, file_service: FileService, row_repo: RowRepo) -> None:
        self.file_service = file_service
        self.row_repo = row_repo

    def reconstruct(self, file_id: int) -> WorkbookView:
        file = self.file_service.get(file_id)
        try:
            rows = self.row_repo.list_for_file(file_id)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to load rows for file {file_id}: {exc}") from exc

        grids: dict[str, SheetGrid] = {}
        first_ids: dict[str, int] = {}
        for row in rows:
            grid = grids.setdefault(row.sheet_name, SheetGrid())
            grid.rows.append(list(row.cells))
            grid.row_numbers.append(row.row_number)
            first_ids[row.sheet_name] = min(first_ids.get(row.sheet_name, row.id or 0), row.id or 0)

        # Rows were inserted sheet by sheet, so the lowest row id restores workbook sheet order.
        ordered = sorted(grids, key=lambda name: first_ids[name])
        return WorkbookView(file=file, sheets={name: grids[name] for name in ordered})
