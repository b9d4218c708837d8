"""Raw cell values as decoded from a workbook.

Only the cell normalizer looks at which variant a cell is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union


@dataclass(frozen=True, slots=True)
class EmptyCell:
    pass


@dataclass(frozen=True, slots=True)
class TextCell:
    value: str


@dataclass(frozen=True, slots=True)
class NumberCell:
    value: float


@dataclass(frozen=True, slots=True)
class DateCell:
    value: date | datetime


@dataclass(frozen=True, slots=True)
class BooleanCell:
    value: bool


Cell = Union[EmptyCell, TextCell, NumberCell, DateCell, BooleanCell]

EMPTY = EmptyCell()
