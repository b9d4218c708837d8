from __future__ import annotations

import sqlite3

from sheetseek.core.errors import DuplicateUploadError, PersistenceError
from sheetseek.domain.models.file import WorkbookFile
from sheetseek.infrastructure.db.repos.file_repo import FileRepo
from sheetseek.infrastructure.storage.upload_store import UploadStore


class DuplicateDetector:
    """Flags re-uploads by exact original name plus byte size.

    This is not a content hash: two different workbooks with the same name
    and size are treated as the same upload. Every stored file is scanned.
    """

    def __init__(self, file_repo: FileRepo, upload_store: UploadStore) -> None:
        self.file_repo = file_repo
        self.upload_store = upload_store

    def find_duplicate(self, original_name: str, size_bytes: int) -> WorkbookFile | None:
        try:
            existing_files = self.file_repo.list()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to list files: {exc}") from exc
        for existing in existing_files:
            if existing.original_name != original_name:
                continue
            if self._stored_size(existing) == size_bytes:
                return existing
        return None

    def ensure_not_duplicate(self, original_name: str, size_bytes: int) -> None:
        existing = self.find_duplicate(original_name, size_bytes)
        if existing is not None:
            raise DuplicateUploadError(
                f"This file has already been uploaded: {original_name} (file id {existing.id})"
            )

    def _stored_size(self, file: WorkbookFile) -> int:
        size = self.upload_store.size(file.storage_path)
        return file.size_bytes if size is None else size
