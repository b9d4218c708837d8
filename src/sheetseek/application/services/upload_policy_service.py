from __future__ import annotations

from sheetseek.core.errors import UploadRejectedError
from sheetseek.infrastructure.parsers.workbook_reader import WorkbookReader


class UploadPolicyService:
    ACCEPTED_EXTENSIONS = frozenset(WorkbookReader.FORMATS)

    def is_accepted(self, original_name: str | None) -> bool:
        return WorkbookReader.supports(original_name)

    def check(self, original_name: str | None) -> None:
        if not str(original_name or "").strip():
            raise UploadRejectedError("Upload has no file name")
        if not self.is_accepted(original_name):
            accepted = ", ".join(sorted(self.ACCEPTED_EXTENSIONS))
            raise UploadRejectedError(
                f"Unsupported file type for {original_name}. Accepted: {accepted}"
            )
