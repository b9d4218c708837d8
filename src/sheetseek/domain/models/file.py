from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class WorkbookFile:
    id: int
    stored_name: str
    original_name: str
    storage_path: str
    size_bytes: int
    created_at: str
