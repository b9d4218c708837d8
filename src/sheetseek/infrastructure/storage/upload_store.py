from __future__ import annotations

from pathlib import Path

from sheetseek.core.files import ensure_directory, write_bytes_atomic
from sheetseek.core.ids import new_stored_name


class UploadStore:
    """Keeps uploaded workbooks byte-for-byte, addressed by a path relative to base_dir."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    def ensure_layout(self) -> None:
        ensure_directory(self.base_dir)

    def save(self, data: bytes, suffix: str = "") -> tuple[str, str]:
        """Store bytes under a fresh name; returns (stored_name, storage_path)."""
        self.ensure_layout()
        stored_name = new_stored_name(suffix)
        relpath = Path(stored_name[:2]) / stored_name
        write_bytes_atomic(self.base_dir / relpath, data)
        return stored_name, relpath.as_posix()

    def abspath(self, storage_path: str) -> Path:
        base = self.base_dir.resolve()
        candidate = (base / storage_path).resolve()
        if candidate != base and base not in candidate.parents:
            raise ValueError(f"Storage path escapes upload directory: {storage_path}")
        return candidate

    def read(self, storage_path: str) -> bytes:
        return self.abspath(storage_path).read_bytes()

    def exists(self, storage_path: str) -> bool:
        return self.abspath(storage_path).is_file()

    def size(self, storage_path: str) -> int | None:
        path = self.abspath(storage_path)
        if not path.is_file():
            return None
        return path.stat().st_size

    def delete(self, storage_path: str) -> bool:
        path = self.abspath(storage_path)
        if not path.exists():
            return False
        path.unlink()
        return True
