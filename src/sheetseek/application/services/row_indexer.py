from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable

from sheetseek.application.services.cell_normalizer import CellNormalizer
from sheetseek.core.config import IndexingConfig
from sheetseek.core.errors import PersistenceError
from sheetseek.domain.models.row import SheetRow
from sheetseek.domain.models.workbook import ParsedSheet
from sheetseek.infrastructure.db.repos.row_repo import RowRepo

logger = logging.getLogger(__name__)

SEARCH_TEXT_SEPARATOR = " "


def search_text_for(cells: Iterable[str]) -> str:
    return SEARCH_TEXT_SEPARATOR.join(cells).lower()


class RowIndexer:
    def __init__(
        self,
        row_repo: RowRepo,
        *,
        normalizer: CellNormalizer | None = None,
        config: IndexingConfig | None = None,
    ) -> None:
        self.row_repo = row_repo
        self.config = config or IndexingConfig()
        self.normalizer = normalizer or CellNormalizer(self.config)

    def build_rows(self, sheets: list[ParsedSheet], file_id: int) -> list[SheetRow]:
        """Flatten parsed sheets into rows, skipping rows with no visible content.

        Row numbers count every sheet row, blank ones included, so they keep
        pointing at the row's original position.
        """
        out: list[SheetRow] = []
        for sheet in sheets:
            for row_number, raw_row in enumerate(sheet.rows, start=1):
                cells = [self.normalizer.normalize(cell) for cell in raw_row]
                search_text = search_text_for(cells)
                if not search_text.strip():
                    continue
                out.append(
                    SheetRow(
                        file_id=file_id,
                        sheet_name=sheet.name,
                        row_number=row_number,
                        cells=cells,
                        search_text=search_text,
                    )
                )
        return out

    def persist(self, rows: list[SheetRow]) -> int:
        try:
            inserted = self.row_repo.insert_many(rows, batch_size=self.config.row_batch_size)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to store indexed rows: {exc}") from exc
        logger.debug("Stored %d rows in batches of %d", inserted, self.config.row_batch_size)
        return inserted

    def index(self, sheets: list[ParsedSheet], file_id: int) -> int:
        return self.persist(self.build_rows(sheets, file_id))
