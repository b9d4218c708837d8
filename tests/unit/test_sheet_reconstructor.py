from pathlib import Path

import pytest

from sheetseek.application.services.file_service import FileService
from sheetseek.application.services.sheet_reconstructor import SheetReconstructor
from sheetseek.core.errors import NotFoundError
from sheetseek.domain.models.row import SheetRow
from sheetseek.infrastructure.db.repos.file_repo import FileRepo
from sheetseek.infrastructure.db.repos.row_repo import RowRepo
from sheetseek.infrastructure.db.sqlite import initialize_schema
from sheetseek.infrastructure.storage.upload_store import UploadStore


def _bootstrap(tmp_path: Path) -> tuple[SheetReconstructor, FileService]:
    db_path = tmp_path / "sheetseek.db"
    schema_path = (
        Path(__file__).resolve().parents[2]
        / "src"
        / "sheetseek"
        / "infrastructure"
        / "db"
        / "schema.sql"
    )
    initialize_schema(db_path, schema_path)
    files = FileService(FileRepo(db_path), RowRepo(db_path), UploadStore(tmp_path / "uploads"))
    return SheetReconstructor(files, files.row_repo), files


def _row(file_id: int, sheet: str, number: int, *cells: str) -> SheetRow:
    return SheetRow(
        file_id=file_id,
        sheet_name=sheet,
        row_number=number,
        cells=list(cells),
        search_text=" ".join(cells).lower(),
    )


def test_grids_are_compacted_and_keep_row_numbers(tmp_path: Path) -> None:
    reconstructor, files = _bootstrap(tmp_path)
    file = files.create(stored_name="a.xlsx", original_name="a.xlsx", storage_path="aa/a.xlsx", size_bytes=3)
    files.row_repo.insert_many(
        [
            _row(file.id, "Sheet1", 1, "Name", "Team"),
            _row(file.id, "Sheet1", 3, "Ada", "Alpha"),
            _row(file.id, "Sheet1", 5, "Grace", ""),
        ]
    )

    view = reconstructor.reconstruct(file.id)

    assert view.file.id == file.id
    grid = view.sheets["Sheet1"]
    assert grid.rows == [["Name", "Team"], ["Ada", "Alpha"], ["Grace", ""]]
    assert grid.row_numbers == [1, 3, 5]


def test_sheets_keep_workbook_order_and_rows_are_sorted(tmp_path: Path) -> None:
    reconstructor, files = _bootstrap(tmp_path)
    file = files.create(stored_name="b.xlsx", original_name="b.xlsx", storage_path="bb/b.xlsx", size_bytes=3)
    files.row_repo.insert_many(
        [
            _row(file.id, "Zeta", 2, "z2"),
            _row(file.id, "Zeta", 1, "z1"),
            _row(file.id, "Alpha", 1, "a1"),
        ]
    )

    view = reconstructor.reconstruct(file.id)

    assert list(view.sheets) == ["Zeta", "Alpha"]
    assert view.sheets["Zeta"].rows == [["z1"], ["z2"]]
    assert view.sheets["Alpha"].row_numbers == [1]


def test_rows_of_other_files_are_not_mixed_in(tmp_path: Path) -> None:
    reconstructor, files = _bootstrap(tmp_path)
    first = files.create(stored_name="c.xlsx", original_name="c.xlsx", storage_path="cc/c.xlsx", size_bytes=3)
    second = files.create(stored_name="d.xlsx", original_name="d.xlsx", storage_path="dd/d.xlsx", size_bytes=3)
    files.row_repo.insert_many([_row(first.id, "Sheet1", 1, "mine"), _row(second.id, "Sheet1", 1, "theirs")])

    assert reconstructor.reconstruct(first.id).sheets["Sheet1"].rows == [["mine"]]


def test_file_without_rows_has_no_sheets(tmp_path: Path) -> None:
    reconstructor, files = _bootstrap(tmp_path)
    file = files.create(stored_name="e.csv", original_name="e.csv", storage_path="ee/e.csv", size_bytes=0)

    assert reconstructor.reconstruct(file.id).sheets == {}


def test_unknown_file_raises_not_found(tmp_path: Path) -> None:
    reconstructor, _files = _bootstrap(tmp_path)

    with pytest.raises(NotFoundError):
        reconstructor.reconstruct(999)
