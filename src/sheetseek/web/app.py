from __future__ import annotations

import logging
import mimetypes
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from sheetseek.application.services.duplicate_detector import DuplicateDetector
from sheetseek.application.services.file_service import FileService
from sheetseek.application.services.project_service import ProjectService
from sheetseek.application.services.row_indexer import RowIndexer
from sheetseek.application.services.search_service import SearchService
from sheetseek.application.services.sheet_reconstructor import SheetReconstructor
from sheetseek.application.services.upload_service import UploadService
from sheetseek.core.config import AppPaths, IndexingConfig
from sheetseek.core.errors import (
    DuplicateUploadError,
    NotFoundError,
    ParseError,
    PersistenceError,
    SearchFailedError,
    SheetSeekError,
    UploadRejectedError,
)
from sheetseek.domain.models.file import WorkbookFile
from sheetseek.infrastructure.db.repos.file_repo import FileRepo
from sheetseek.infrastructure.db.repos.row_repo import RowRepo
from sheetseek.infrastructure.storage.upload_store import UploadStore

logger = logging.getLogger(__name__)

_ERROR_STATUS: list[tuple[type[SheetSeekError], int, str]] = [
    (UploadRejectedError, 400, "upload_rejected"),
    (DuplicateUploadError, 400, "duplicate_upload"),
    (ParseError, 400, "parse_error"),
    (NotFoundError, 404, "not_found"),
    (SearchFailedError, 500, "search_failed"),
    (PersistenceError, 500, "persistence_error"),
]


def _error_status(exc: SheetSeekError) -> tuple[int, str]:
    for exc_type, status_code, kind in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code, kind
    return 500, "error"


def _file_payload(file: WorkbookFile) -> dict[str, Any]:
    return {
        "id": file.id,
        "stored_name": file.stored_name,
        "original_name": file.original_name,
        "size_bytes": file.size_bytes,
        "created_at": file.created_at,
    }


def create_app(paths: AppPaths, *, config: IndexingConfig | None = None) -> FastAPI:
    app = FastAPI(title="SheetSeek", version="0.1.0")
    indexing_config = config or IndexingConfig()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    ProjectService(paths).init_project()

    # Services are built per request; the database is the only shared state.
    def get_file_service() -> FileService:
        return FileService(
            file_repo=FileRepo(paths.db_path),
            row_repo=RowRepo(paths.db_path),
            upload_store=UploadStore(paths.uploads_dir),
        )

    def get_upload_service() -> UploadService:
        files = get_file_service()
        return UploadService(
            file_service=files,
            duplicate_detector=DuplicateDetector(files.file_repo, files.upload_store),
            row_indexer=RowIndexer(files.row_repo, config=indexing_config),
            upload_store=files.upload_store,
        )

    def get_search_service() -> SearchService:
        return SearchService(RowRepo(paths.db_path), config=indexing_config)

    def get_sheet_reconstructor() -> SheetReconstructor:
        files = get_file_service()
        return SheetReconstructor(files, files.row_repo)

    @app.exception_handler(SheetSeekError)
    async def handle_sheetseek_error(request: Request, exc: SheetSeekError) -> JSONResponse:
        status_code, kind = _error_status(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"ok": False, "error": kind, "message": str(exc)},
        )

    @app.post("/api/upload")
    def api_upload(file: UploadFile = File(...)) -> dict[str, Any]:
        data = file.file.read()
        result = get_upload_service().upload(data, file.filename or "")
        return {
            "ok": True,
            "message": "File uploaded and indexed successfully",
            "file_id": result.file.id,
            "file": _file_payload(result.file),
            "row_count": result.row_count,
            "sheet_count": result.sheet_count,
        }

    @app.get("/api/search")
    def api_search(terms: str | None = Query(default=None)) -> dict[str, Any]:
        results = [asdict(r) for r in get_search_service().search_raw(terms)]
        return {"ok": True, "count": len(results), "results": results}

    @app.get("/api/files")
    def api_files() -> dict[str, Any]:
        files = [_file_payload(f) for f in get_file_service().list_files()]
        return {"ok": True, "count": len(files), "files": files}

    @app.get("/api/files/{file_id}")
    def api_file_detail(file_id: int) -> dict[str, Any]:
        view = get_sheet_reconstructor().reconstruct(file_id)
        return {
            "ok": True,
            **_file_payload(view.file),
            "sheets": {name: grid.rows for name, grid in view.sheets.items()},
            "row_numbers": {name: grid.row_numbers for name, grid in view.sheets.items()},
        }

    @app.get("/api/files/{file_id}/download")
    def api_file_download(file_id: int) -> FileResponse:
        service = get_file_service()
        file = service.get(file_id)
        try:
            stored_path = service.upload_store.abspath(file.storage_path)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid storage path on file") from exc
        if not stored_path.is_file():
            raise NotFoundError(f"Stored workbook missing for file {file_id}")
        media_type = mimetypes.guess_type(file.original_name)[0] or "application/octet-stream"
        return FileResponse(path=str(stored_path), media_type=media_type, filename=file.original_name)

    @app.delete("/api/files/{file_id}")
    def api_file_delete(file_id: int) -> dict[str, Any]:
        result = get_file_service().delete(file_id)
        return {
            "ok": True,
            "message": "File deleted successfully",
            "file_id": result.file.id,
            "rows_deleted": result.rows_deleted,
        }

    return app
