from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from sheetseek.application.services.duplicate_detector import DuplicateDetector
from sheetseek.application.services.file_service import FileService
from sheetseek.application.services.row_indexer import RowIndexer
from sheetseek.application.services.upload_policy_service import UploadPolicyService
from sheetseek.core.errors import PersistenceError, UploadRejectedError
from sheetseek.domain.models.file import WorkbookFile
from sheetseek.infrastructure.parsers.workbook_reader import WorkbookReader
from sheetseek.infrastructure.storage.upload_store import UploadStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadResult:
    file: WorkbookFile
    row_count: int
    sheet_count: int


class UploadService:
    def __init__(
        self,
        *,
        file_service: FileService,
        duplicate_detector: DuplicateDetector,
        row_indexer: RowIndexer,
        upload_store: UploadStore,
        reader: WorkbookReader | None = None,
        policy: UploadPolicyService | None = None,
    ) -> None:
        self.file_service = file_service
        self.duplicate_detector = duplicate_detector
        self.row_indexer = row_indexer
        self.upload_store = upload_store
        self.reader = reader or WorkbookReader()
        self.policy = policy or UploadPolicyService()

    def upload(self, data: bytes, original_name: str) -> UploadResult:
        """Store, parse and index one workbook.

        The workbook is parsed before anything is written, so a duplicate or an
        unreadable workbook leaves no trace. If storing rows fails part way,
        whatever was written for this upload is removed again.
        """
        self.policy.check(original_name)
        self.duplicate_detector.ensure_not_duplicate(original_name, len(data))
        sheets = self.reader.read(data, file_name=original_name)

        suffix = Path(original_name).suffix.lower()
        try:
            stored_name, storage_path = self.upload_store.save(data, suffix)
        except OSError as exc:
            raise PersistenceError(f"Failed to store uploaded workbook {original_name}: {exc}") from exc

        try:
            file = self.file_service.create(
                stored_name=stored_name,
                original_name=original_name,
                storage_path=storage_path,
                size_bytes=len(data),
            )
        except PersistenceError:
            self.file_service.discard_binary(storage_path)
            raise

        try:
            row_count = self.row_indexer.index(sheets, file.id)
        except PersistenceError:
            logger.exception("Indexing failed for %s; rolling back file %s", original_name, file.id)
            self._roll_back(file)
            raise

        logger.info(
            "Uploaded %s as file %s: %d rows from %d sheets",
            original_name,
            file.id,
            row_count,
            len(sheets),
        )
        return UploadResult(file=file, row_count=row_count, sheet_count=len(sheets))

    def upload_path(self, path: Path, original_name: str | None = None) -> UploadResult:
        source = path.expanduser().resolve()
        if not source.is_file():
            raise UploadRejectedError(f"File not found: {source}")
        return self.upload(source.read_bytes(), original_name or source.name)

    def _roll_back(self, file: WorkbookFile) -> None:
        try:
            self.file_service.row_repo.delete_for_file(file.id)
            self.file_service.file_repo.delete(file.id)
        except sqlite3.Error as exc:
            logger.error("Rollback of file %s left partial rows behind: %s", file.id, exc)
        self.file_service.discard_binary(file.storage_path)
