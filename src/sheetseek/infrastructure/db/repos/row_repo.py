from __future__ import annotations

import json
from pathlib import Path

from sheetseek.domain.models.row import SearchResult, SheetRow
from sheetseek.infrastructure.db.sqlite import get_connection


class RowRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def insert_many(self, rows: list[SheetRow], *, batch_size: int = 1000) -> int:
        """Insert rows in fixed-size batches, one transaction per batch."""
        if not rows:
            return 0
        size = max(1, int(batch_size))
        inserted = 0
        for start in range(0, len(rows), size):
            batch = rows[start : start + size]
            with get_connection(self.db_path) as conn:
                conn.executemany(
                    """
                    INSERT INTO rows (
                        file_id,
                        sheet_name,
                        row_number,
                        cells_json,
                        search_text
                    ) VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            row.file_id,
                            row.sheet_name,
                            row.row_number,
                            json.dumps(row.cells, ensure_ascii=False),
                            row.search_text,
                        )
                        for row in batch
                    ],
                )
                conn.commit()
            inserted += len(batch)
        return inserted

    def list_for_file(self, file_id: int) -> list[SheetRow]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM rows
                WHERE file_id = ?
                ORDER BY row_number ASC, id ASC
                """,
                (file_id,),
            ).fetchall()
        return [self._to_model(row) for row in rows]

    def delete_for_file(self, file_id: int) -> int:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM rows WHERE file_id = ?", (file_id,))
            conn.commit()
            return cursor.rowcount

    def search(self, terms: list[str], *, limit: int = 100) -> list[SearchResult]:
        """Rows whose search text contains every term, joined with their file name.

        Terms are expected lowercase already. instr() keeps matching literal,
        so '%' and '_' in a term are not wildcards.
        """
        if not terms:
            return []
        conditions = " AND ".join("instr(r.search_text, ?) > 0" for _ in terms)
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                f"""
                SELECT
                    r.id,
                    r.file_id,
                    r.sheet_name,
                    r.row_number,
                    r.cells_json,
                    r.search_text,
                    f.original_name
                FROM rows AS r
                INNER JOIN files AS f ON f.id = r.file_id
                WHERE {conditions}
                ORDER BY r.id ASC
                LIMIT ?
                """,
                (*terms, limit),
            ).fetchall()
        return [
            SearchResult(
                id=int(row["id"]),
                file_id=int(row["file_id"]),
                original_name=row["original_name"],
                sheet_name=row["sheet_name"],
                row_number=int(row["row_number"]),
                cells=self._decode_cells(row["cells_json"]),
                search_text=row["search_text"],
            )
            for row in rows
        ]

    @classmethod
    def _to_model(cls, row) -> SheetRow:
        return SheetRow(
            id=int(row["id"]),
            file_id=int(row["file_id"]),
            sheet_name=row["sheet_name"],
            row_number=int(row["row_number"]),
            cells=cls._decode_cells(row["cells_json"]),
            search_text=row["search_text"],
        )

    @staticmethod
    def _decode_cells(raw: str | None) -> list[str]:
        if not raw:
            return []
        parsed = json.loads(raw)
        if not isinstance(parsed, list):
            return []
        return ["" if item is None else str(item) for item in parsed]
