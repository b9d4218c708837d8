from __future__ import annotations

import json
import sqlite3

from sheetseek.core.config import IndexingConfig
from sheetseek.core.errors import SearchFailedError
from sheetseek.domain.models.row import SearchResult
from sheetseek.infrastructure.db.repos.row_repo import RowRepo


def parse_terms(raw: str | None) -> list[str]:
    """Decode a JSON array of terms; anything else is one literal term."""
    if raw is None or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return [raw]
    if isinstance(parsed, list):
        return [str(item) for item in parsed if item is not None]
    if isinstance(parsed, str):
        return [parsed]
    return [raw]


def clean_terms(terms: list[str]) -> list[str]:
    out: list[str] = []
    for term in terms:
        value = str(term or "").strip().lower()
        if value and value not in out:
            out.append(value)
    return out


class SearchService:
    """Conjunctive substring search over every indexed row.

    A row matches when each term occurs somewhere in its search text; "cat"
    matches "category". Results come back in row id order, capped at the
    configured limit.
    """

    def __init__(self, row_repo: RowRepo, *, config: IndexingConfig | None = None) -> None:
        self.row_repo = row_repo
        self.config = config or IndexingConfig()

    def search(self, terms: list[str]) -> list[SearchResult]:
        cleaned = clean_terms(terms)
        if not cleaned:
            return []
        try:
            return self.row_repo.search(cleaned, limit=self.config.search_limit)
        except sqlite3.Error as exc:
            raise SearchFailedError(f"Search failed: {exc}") from exc

    def search_raw(self, raw_terms: str | None) -> list[SearchResult]:
        return self.search(parse_terms(raw_terms))
