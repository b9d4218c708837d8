from pathlib import Path

from fastapi.testclient import TestClient

from sheetseek.core.config import AppPaths
from sheetseek.web.app import create_app
from workbook_factory import build_xlsx

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _client(tmp_path: Path) -> TestClient:
    project_root = tmp_path / "proj"
    project_root.mkdir(parents=True, exist_ok=True)
    paths = AppPaths(
        project_root=project_root,
        data_dir=project_root / ".sheetseek",
        db_path=project_root / ".sheetseek" / "sheetseek.db",
        uploads_dir=project_root / ".sheetseek" / "uploads",
    )
    return TestClient(create_app(paths))


def _roster() -> bytes:
    return build_xlsx(
        {
            "Roster": [
                ["Name", "Team"],
                ["Ada", "Alpha Team"],
                None,
                ["Grace", "Beta Squad"],
            ],
            "Notes": [["alpha beta memo"]],
        }
    )


def test_web_app_end_to_end_smoke(tmp_path: Path) -> None:
    client = _client(tmp_path)
    data = _roster()

    # Upload
    r = client.post("/api/upload", files={"file": ("roster.xlsx", data, XLSX_TYPE)})
    assert r.status_code == 200
    payload = r.json()
    assert payload["ok"] is True
    assert payload["row_count"] == 4
    assert payload["sheet_count"] == 2
    assert payload["file"]["original_name"] == "roster.xlsx"
    assert payload["file"]["size_bytes"] == len(data)
    file_id = payload["file_id"]

    # Duplicate
    r = client.post("/api/upload", files={"file": ("roster.xlsx", data, XLSX_TYPE)})
    assert r.status_code == 400
    assert r.json()["error"] == "duplicate_upload"

    # Listing
    r = client.get("/api/files")
    assert r.status_code == 200
    assert r.json()["count"] == 1
    assert r.json()["files"][0]["id"] == file_id

    # Search
    r = client.get("/api/search", params={"terms": '["alpha", "BETA"]'})
    assert r.status_code == 200
    results = r.json()["results"]
    assert [(m["sheet_name"], m["row_number"]) for m in results] == [("Notes", 1)]
    assert results[0]["original_name"] == "roster.xlsx"
    assert results[0]["cells"] == ["alpha beta memo"]

    r = client.get("/api/search", params={"terms": "grace"})
    assert [m["row_number"] for m in r.json()["results"]] == [4]

    # Reconstructed sheets
    r = client.get(f"/api/files/{file_id}")
    assert r.status_code == 200
    detail = r.json()
    assert list(detail["sheets"]) == ["Roster", "Notes"]
    assert detail["sheets"]["Roster"] == [["Name", "Team"], ["Ada", "Alpha Team"], ["Grace", "Beta Squad"]]
    assert detail["row_numbers"]["Roster"] == [1, 2, 4]

    # Original bytes
    r = client.get(f"/api/files/{file_id}/download")
    assert r.status_code == 200
    assert r.content == data
    assert "roster.xlsx" in r.headers.get("content-disposition", "")

    # Delete
    r = client.delete(f"/api/files/{file_id}")
    assert r.status_code == 200
    assert r.json()["rows_deleted"] == 4

    r = client.get(f"/api/files/{file_id}")
    assert r.status_code == 404
    r = client.get("/api/search", params={"terms": "alpha"})
    assert r.json()["results"] == []


def test_blank_search_returns_empty_results(tmp_path: Path) -> None:
    client = _client(tmp_path)
    client.post("/api/upload", files={"file": ("roster.xlsx", _roster(), XLSX_TYPE)})

    for params in ({}, {"terms": ""}, {"terms": '["  "]'}):
        r = client.get("/api/search", params=params)
        assert r.status_code == 200
        assert r.json() == {"ok": True, "count": 0, "results": []}


def test_rejected_uploads_return_400(tmp_path: Path) -> None:
    client = _client(tmp_path)

    r = client.post("/api/upload", files={"file": ("notes.txt", b"plain text", "text/plain")})
    assert r.status_code == 400
    assert r.json()["error"] == "upload_rejected"

    r = client.post("/api/upload", files={"file": ("broken.xlsx", b"not a zip", XLSX_TYPE)})
    assert r.status_code == 400
    assert r.json()["error"] == "parse_error"

    assert client.get("/api/files").json()["count"] == 0


def test_unknown_file_ids_return_404(tmp_path: Path) -> None:
    client = _client(tmp_path)

    assert client.get("/api/files/77").status_code == 404
    assert client.get("/api/files/77/download").status_code == 404
    r = client.delete("/api/files/77")
    assert r.status_code == 404
    assert r.json()["ok"] is False
