from __future__ import annotations

import math
from datetime import date, datetime

from sheetseek.core.config import IndexingConfig
from sheetseek.core.serials import serial_to_datetime
from sheetseek.domain.models.cell import (
    BooleanCell,
    DateCell,
    EmptyCell,
    NumberCell,
    TextCell,
)

_DATE_SEPARATORS = ("/", "-", ".")


class CellNormalizer:
    """Turns one raw cell into the string shown and searched for it.

    Numbers inside the configured serial window are shown as dates: a date
    column can reach us as bare serials, and the reader has no way to tell
    those apart from ordinary numbers of the same size. Large plain integers
    in that window are rendered as dates as a result.
    """

    def __init__(self, config: IndexingConfig | None = None) -> None:
        self.config = config or IndexingConfig()

    def normalize(self, raw: object) -> str:
        try:
            return self._normalize(raw)
        except Exception:
            return str(raw)

    def _normalize(self, raw: object) -> str:
        if raw is None or isinstance(raw, EmptyCell):
            return ""
        if isinstance(raw, TextCell):
            return raw.value
        if isinstance(raw, BooleanCell):
            return self._format_bool(raw.value)
        if isinstance(raw, DateCell):
            return self._format_date(raw.value)
        if isinstance(raw, NumberCell):
            return self._format_number(raw.value)
        # Plain Python values are accepted as their obvious variant.
        if isinstance(raw, bool):
            return self._format_bool(raw)
        if isinstance(raw, (date, datetime)):
            return self._format_date(raw)
        if isinstance(raw, (int, float)):
            return self._format_number(float(raw))
        return str(raw)

    def _format_number(self, value: float) -> str:
        if self.config.date_serial_min < value < self.config.date_serial_max:
            try:
                rendered = self._format_date(serial_to_datetime(value))
            except (OverflowError, ValueError):
                rendered = ""
            if any(sep in rendered for sep in _DATE_SEPARATORS):
                return rendered
        return self.plain_number(value)

    def _format_date(self, value: date | datetime) -> str:
        return value.strftime(self.config.date_format)

    @staticmethod
    def _format_bool(value: bool) -> str:
        return "true" if value else "false"

    @staticmethod
    def plain_number(value: float) -> str:
        if math.isfinite(value) and value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)
