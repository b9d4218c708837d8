from __future__ import annotations

from sheetseek.application.services.duplicate_detector import DuplicateDetector
from sheetseek.application.services.file_service import FileService
from sheetseek.application.services.project_service import ProjectService
from sheetseek.application.services.row_indexer import RowIndexer
from sheetseek.application.services.search_service import SearchService
from sheetseek.application.services.sheet_reconstructor import SheetReconstructor
from sheetseek.application.services.upload_service import UploadService
from sheetseek.cli.context import CLIContext
from sheetseek.core.errors import ProjectNotInitializedError
from sheetseek.infrastructure.db.repos.file_repo import FileRepo
from sheetseek.infrastructure.db.repos.row_repo import RowRepo
from sheetseek.infrastructure.storage.upload_store import UploadStore


def require_initialized_project(ctx: CLIContext) -> None:
    project_service = ProjectService(ctx.paths)
    if not project_service.is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'sheetseek init' first in {ctx.paths.project_root}"
        )


def file_service(ctx: CLIContext) -> FileService:
    return FileService(
        file_repo=FileRepo(ctx.paths.db_path),
        row_repo=RowRepo(ctx.paths.db_path),
        upload_store=UploadStore(ctx.paths.uploads_dir),
    )


def upload_service(ctx: CLIContext) -> UploadService:
    files = file_service(ctx)
    return UploadService(
        file_service=files,
        duplicate_detector=DuplicateDetector(files.file_repo, files.upload_store),
        row_indexer=RowIndexer(files.row_repo, config=ctx.config),
        upload_store=files.upload_store,
    )


def search_service(ctx: CLIContext) -> SearchService:
    return SearchService(RowRepo(ctx.paths.db_path), config=ctx.config)


def sheet_reconstructor(ctx: CLIContext) -> SheetReconstructor:
    files = file_service(ctx)
    return SheetReconstructor(files, files.row_repo)
