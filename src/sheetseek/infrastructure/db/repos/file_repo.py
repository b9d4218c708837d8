from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from sheetseek.domain.models.file import WorkbookFile
from sheetseek.infrastructure.db.sqlite import get_connection


class FileRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def insert(self, file: WorkbookFile) -> WorkbookFile:
        """Persist a file record and return it with its assigned id."""
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO files (
                    stored_name,
                    original_name,
                    storage_path,
                    size_bytes,
                    created_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    file.stored_name,
                    file.original_name,
                    file.storage_path,
                    file.size_bytes,
                    file.created_at,
                ),
            )
            conn.commit()
            file_id = int(cursor.lastrowid)
        return replace(file, id=file_id)

    def get_by_id(self, file_id: int) -> WorkbookFile | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM files WHERE id = ?",
                (file_id,),
            ).fetchone()
        return self._to_model(row) if row else None

    def list(self) -> list[WorkbookFile]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM files ORDER BY id ASC").fetchall()
        return [self._to_model(row) for row in rows]

    def delete(self, file_id: int) -> int:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM files WHERE id = ?", (file_id,))
            conn.commit()
            return cursor.rowcount

    @staticmethod
    def _to_model(row) -> WorkbookFile:
        return WorkbookFile(
            id=int(row["id"]),
            stored_name=row["stored_name"],
            original_name=row["original_name"],
            storage_path=row["storage_path"],
            size_bytes=int(row["size_bytes"] or 0),
            created_at=row["created_at"],
        )
