from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from sheetseek.core.errors import NotFoundError, PersistenceError
from sheetseek.core.time import now_utc_iso
from sheetseek.domain.models.file import WorkbookFile
from sheetseek.infrastructure.db.repos.file_repo import FileRepo
from sheetseek.infrastructure.db.repos.row_repo import RowRepo
from sheetseek.infrastructure.storage.upload_store import UploadStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeleteResult:
    file: WorkbookFile
    rows_deleted: int
    binary_deleted: bool


class FileService:
    def __init__(self, file_repo: FileRepo, row_repo: RowRepo, upload_store: UploadStore) -> None:
        self.file_repo = file_repo
        self.row_repo = row_repo
        self.upload_store = upload_store

    def create(
        self,
        *,
        stored_name: str,
        original_name: str,
        storage_path: str,
        size_bytes: int,
    ) -> WorkbookFile:
        pending = WorkbookFile(
            id=0,
            stored_name=stored_name,
            original_name=original_name,
            storage_path=storage_path,
            size_bytes=size_bytes,
            created_at=now_utc_iso(),
        )
        try:
            return self.file_repo.insert(pending)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to create file record for {original_name}: {exc}") from exc

    def list_files(self) -> list[WorkbookFile]:
        try:
            return self.file_repo.list()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to list files: {exc}") from exc

    def get(self, file_id: int) -> WorkbookFile:
        try:
            file = self.file_repo.get_by_id(file_id)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to load file {file_id}: {exc}") from exc
        if file is None:
            raise NotFoundError(f"File not found: {file_id}")
        return file

    def read_content(self, file_id: int) -> tuple[WorkbookFile, bytes]:
        file = self.get(file_id)
        try:
            data = self.upload_store.read(file.storage_path)
        except FileNotFoundError as exc:
            raise NotFoundError(f"Stored workbook missing for file {file_id}") from exc
        return file, data

    def delete(self, file_id: int) -> DeleteResult:
        """Remove a file's rows, then its record, then its stored bytes.

        Rows go first so no row is ever left pointing at a missing file.
        Failing to remove the bytes is logged and does not fail the delete.
        """
        file = self.get(file_id)
        try:
            rows_deleted = self.row_repo.delete_for_file(file_id)
            self.file_repo.delete(file_id)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to delete file {file_id}: {exc}") from exc

        binary_deleted = self.discard_binary(file.storage_path)
        logger.info("Deleted file %s (%s) with %d rows", file.id, file.original_name, rows_deleted)
        return DeleteResult(file=file, rows_deleted=rows_deleted, binary_deleted=binary_deleted)

    def discard_binary(self, storage_path: str) -> bool:
        try:
            return self.upload_store.delete(storage_path)
        except (OSError, ValueError) as exc:
            logger.warning("Could not remove stored workbook %s: %s", storage_path, exc)
            return False
