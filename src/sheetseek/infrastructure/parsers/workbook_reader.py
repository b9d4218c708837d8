from __future__ import annotations

import csv
import io
import re
import struct
import zipfile
import zlib
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Iterator
from xml.etree import ElementTree as ET

import xlrd
from xlrd.biffh import error_text_from_code

from sheetseek.core.errors import ParseError
from sheetseek.core.serials import serial_to_calendar
from sheetseek.domain.models.cell import (
    EMPTY,
    BooleanCell,
    Cell,
    DateCell,
    NumberCell,
    TextCell,
)
from sheetseek.domain.models.workbook import ParsedSheet

# Built-in number formats that show a calendar date (ECMA-376 18.8.30).
# Time-only formats (18-21, 45-47) are left as numbers.
_BUILTIN_DATE_FORMAT_IDS = frozenset({14, 15, 16, 17, 22})
_CSV_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?")
_ZIP_SIGNATURE = b"PK\x03\x04"
# What xlrd raises on corrupt or non-BIFF input.
_XLS_ERRORS = (xlrd.XLRDError, AssertionError, EOFError, IndexError, KeyError, ValueError, struct.error)
_FORMAT_NOISE = re.compile(r'"[^"]*"|\[[^\]]*\]|\\.|_.|\*.')


class WorkbookReader:
    """Decodes workbook bytes into sheets of raw cells.

    Every sheet row is returned, starting at row 1, so list position + 1 is
    the row number shown by a spreadsheet application. Rows missing from the
    file come back as empty lists; nothing is trimmed or treated as a header.
    """

    FORMATS = {".xlsx": "xlsx", ".xlsm": "xlsx", ".xls": "xls", ".csv": "csv"}
    CSV_SHEET_NAME = "Sheet1"
    _CSV_DIALECT_SCAN_BYTES = 131072

    @classmethod
    def supports(cls, file_name: str | None) -> bool:
        return Path(file_name or "").suffix.lower() in cls.FORMATS

    def read(self, data: bytes, *, file_name: str) -> list[ParsedSheet]:
        suffix = Path(file_name or "").suffix.lower()
        data_format = self.FORMATS.get(suffix)
        if data_format == "xlsx":
            return self.read_xlsx(data)
        if data_format == "xls":
            return self.read_xls(data)
        if data_format == "csv":
            return self.read_csv(data)
        raise ParseError(f"Unsupported workbook format: {suffix or file_name!r}")

    def read_xlsx(self, data: bytes) -> list[ParsedSheet]:
        try:
            with zipfile.ZipFile(io.BytesIO(data), "r") as archive:
                names = set(archive.namelist())
                if "xl/workbook.xml" not in names:
                    raise ParseError("Not a workbook: xl/workbook.xml is missing")
                date1904 = self._xlsx_uses_1904(archive)
                shared_strings = self._xlsx_shared_strings(archive, names)
                date_styles = self._xlsx_date_styles(archive, names)
                sheets: list[ParsedSheet] = []
                for sheet_name, sheet_path in self._xlsx_sheet_entries(archive, names):
                    if sheet_path not in names:
                        raise ParseError(f"Worksheet part missing for sheet {sheet_name!r}: {sheet_path}")
                    rows = self._collect_rows(
                        self._iter_xlsx_rows(
                            archive=archive,
                            sheet_path=sheet_path,
                            shared_strings=shared_strings,
                            date_styles=date_styles,
                            date1904=date1904,
                        )
                    )
                    sheets.append(ParsedSheet(name=sheet_name, rows=rows))
        except ParseError:
            raise
        except (
            zipfile.BadZipFile,
            ET.ParseError,
            KeyError,
            EOFError,
            OSError,
            NotImplementedError,
            RuntimeError,
            ValueError,
            zlib.error,
        ) as exc:
            # zipfile raises RuntimeError for password-protected entries.
            raise ParseError(f"Unreadable workbook: {exc}") from exc
        return sheets

    def read_xls(self, data: bytes) -> list[ParsedSheet]:
        """Legacy BIFF workbooks (.xls), decoded with xlrd."""
        try:
            book = xlrd.open_workbook(file_contents=data, on_demand=True)
        except _XLS_ERRORS as exc:
            raise ParseError(f"Unreadable workbook: {exc}") from exc

        sheets: list[ParsedSheet] = []
        try:
            for index in range(book.nsheets):
                sheet = book.sheet_by_index(index)
                rows = [self._xls_row(sheet.row(row_idx), datemode=book.datemode) for row_idx in range(sheet.nrows)]
                sheets.append(ParsedSheet(name=sheet.name, rows=rows))
                book.unload_sheet(index)
        except _XLS_ERRORS as exc:
            raise ParseError(f"Unreadable workbook: {exc}") from exc
        finally:
            book.release_resources()
        return sheets

    def read_csv(self, data: bytes) -> list[ParsedSheet]:
        if data.startswith(_ZIP_SIGNATURE) or b"\x00" in data:
            raise ParseError("Unreadable CSV: input is binary, not delimited text")
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Unreadable CSV: not UTF-8 text ({exc.reason} at byte {exc.start})") from exc
        dialect = self._detect_csv_dialect(text[: self._CSV_DIALECT_SCAN_BYTES])
        rows: list[list[Cell]] = []
        try:
            for raw_row in csv.reader(io.StringIO(text, newline=""), dialect=dialect):
                rows.append([self._csv_cell(value) for value in raw_row])
        except csv.Error as exc:
            raise ParseError(f"Unreadable CSV: {exc}") from exc
        return [ParsedSheet(name=self.CSV_SHEET_NAME, rows=rows)]

    @staticmethod
    def _csv_cell(value: str) -> Cell:
        if value == "":
            return EMPTY
        # Leading zeros ("007") and other formatting mean the value is a code, not a number.
        if _CSV_NUMBER.fullmatch(value):
            return NumberCell(float(value))
        return TextCell(value)

    @staticmethod
    def _xls_row(cells: list, *, datemode: int) -> list[Cell]:
        row: list[Cell] = []
        for cell in cells:
            if cell.ctype == xlrd.XL_CELL_TEXT:
                row.append(TextCell(cell.value) if cell.value != "" else EMPTY)
            elif cell.ctype == xlrd.XL_CELL_NUMBER:
                row.append(NumberCell(float(cell.value)))
            elif cell.ctype == xlrd.XL_CELL_DATE:
                number = float(cell.value)
                if number < 1:
                    row.append(NumberCell(number))
                    continue
                try:
                    row.append(DateCell(serial_to_calendar(number, date1904=datemode == 1)))
                except OverflowError:
                    row.append(NumberCell(number))
            elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                row.append(BooleanCell(bool(cell.value)))
            elif cell.ctype == xlrd.XL_CELL_ERROR:
                row.append(TextCell(error_text_from_code.get(cell.value, "#ERR")))
            else:
                row.append(EMPTY)
        while row and row[-1] is EMPTY:
            row.pop()
        return row

    @staticmethod
    def _collect_rows(numbered_rows: Iterator[tuple[int, dict[int, Cell]]]) -> list[list[Cell]]:
        rows: list[list[Cell]] = []
        for row_number, row_map in numbered_rows:
            while len(rows) < row_number - 1:
                rows.append([])
            width = max(row_map.keys(), default=0)
            rows.append([row_map.get(col, EMPTY) for col in range(1, width + 1)])
        return rows

    def _detect_csv_dialect(self, sample: str) -> type[csv.Dialect]:
        try:
            return csv.Sniffer().sniff(sample, delimiters=",;\t|")
        except csv.Error:
            return csv.excel

    def _xlsx_uses_1904(self, archive: zipfile.ZipFile) -> bool:
        root = ET.fromstring(archive.read("xl/workbook.xml"))
        for node in root.iter():
            if self._local_tag(node.tag) == "workbookPr":
                flag = str(node.attrib.get("date1904") or "").strip().lower()
                return flag in {"1", "true"}
        return False

    def _xlsx_sheet_entries(self, archive: zipfile.ZipFile, names: set[str]) -> list[tuple[str, str]]:
        workbook_root = ET.fromstring(archive.read("xl/workbook.xml"))
        rel_map: dict[str, str] = {}
        rels_path = "xl/_rels/workbook.xml.rels"
        if rels_path in names:
            rels_root = ET.fromstring(archive.read(rels_path))
            for rel in rels_root:
                if self._local_tag(rel.tag) != "Relationship":
                    continue
                rel_id = str(rel.attrib.get("Id") or "").strip()
                target = str(rel.attrib.get("Target") or "").strip()
                if rel_id and target:
                    rel_map[rel_id] = target

        entries: list[tuple[str, str]] = []
        for node in workbook_root.iter():
            if self._local_tag(node.tag) != "sheet":
                continue
            name = str(node.attrib.get("name") or "").strip() or f"Sheet{len(entries) + 1}"
            rel_id = ""
            for key in node.attrib.keys():
                if key.endswith("}id") or key == "r:id":
                    rel_id = str(node.attrib.get(key) or "").strip()
                    break
            target = rel_map.get(rel_id, "")
            if not target:
                continue
            entries.append((name, self._resolve_xlsx_target(target)))
        return entries

    @staticmethod
    def _resolve_xlsx_target(target: str) -> str:
        normalized = target.replace("\\", "/").strip()
        if normalized.startswith("/"):
            normalized = normalized.lstrip("/")
        if not normalized.startswith("xl/"):
            normalized = f"xl/{normalized}"
        return str(PurePosixPath(normalized))

    def _xlsx_shared_strings(self, archive: zipfile.ZipFile, names: set[str]) -> list[str]:
        if "xl/sharedStrings.xml" not in names:
            return []
        values: list[str] = []
        with archive.open("xl/sharedStrings.xml", "r") as stream:
            for _event, elem in ET.iterparse(stream, events=("end",)):
                if self._local_tag(elem.tag) != "si":
                    continue
                values.append(self._string_item_text(elem))
                elem.clear()
        return values

    def _xlsx_date_styles(self, archive: zipfile.ZipFile, names: set[str]) -> set[int]:
        """Indexes into cellXfs whose number format displays a date."""
        if "xl/styles.xml" not in names:
            return set()
        root = ET.fromstring(archive.read("xl/styles.xml"))
        custom_formats: dict[int, str] = {}
        date_styles: set[int] = set()
        for node in root:
            tag = self._local_tag(node.tag)
            if tag == "numFmts":
                for fmt in node:
                    try:
                        fmt_id = int(fmt.attrib.get("numFmtId", ""))
                    except ValueError:
                        continue
                    custom_formats[fmt_id] = str(fmt.attrib.get("formatCode") or "")
            elif tag == "cellXfs":
                for index, xf in enumerate(child for child in node if self._local_tag(child.tag) == "xf"):
                    try:
                        fmt_id = int(xf.attrib.get("numFmtId", "0"))
                    except ValueError:
                        continue
                    if self._is_date_format(fmt_id, custom_formats.get(fmt_id)):
                        date_styles.add(index)
        return date_styles

    @staticmethod
    def _is_date_format(fmt_id: int, format_code: str | None) -> bool:
        if format_code is None:
            return fmt_id in _BUILTIN_DATE_FORMAT_IDS
        # Only the positive-number section decides how a serial is shown.
        section = _FORMAT_NOISE.sub("", format_code.split(";", 1)[0]).lower()
        return "y" in section or "d" in section

    def _iter_xlsx_rows(
        self,
        *,
        archive: zipfile.ZipFile,
        sheet_path: str,
        shared_strings: list[str],
        date_styles: set[int],
        date1904: bool,
    ) -> Iterator[tuple[int, dict[int, Cell]]]:
        with archive.open(sheet_path, "r") as stream:
            row_seq = 0
            for _event, elem in ET.iterparse(stream, events=("end",)):
                if self._local_tag(elem.tag) != "row":
                    continue
                try:
                    row_number = int(elem.attrib.get("r", row_seq + 1))
                except ValueError:
                    row_number = row_seq + 1
                row_seq = row_number
                row_map: dict[int, Cell] = {}
                cell_seq = 0
                for child in list(elem):
                    if self._local_tag(child.tag) != "c":
                        continue
                    ref = child.attrib.get("r")
                    col_idx = self._cell_ref_to_col_index(ref) if ref else cell_seq + 1
                    cell_seq = max(1, col_idx)
                    row_map[cell_seq] = self._xlsx_cell_value(
                        child,
                        shared_strings=shared_strings,
                        date_styles=date_styles,
                        date1904=date1904,
                    )
                yield row_number, row_map
                elem.clear()

    @classmethod
    def _xlsx_cell_value(
        cls,
        cell_node: ET.Element,
        *,
        shared_strings: list[str],
        date_styles: set[int],
        date1904: bool,
    ) -> Cell:
        cell_type = (cell_node.attrib.get("t") or "n").strip()
        if cell_type == "inlineStr":
            for child in list(cell_node):
                if cls._local_tag(child.tag) == "is":
                    return TextCell(cls._string_item_text(child))
            return EMPTY

        value_text: str | None = None
        for child in list(cell_node):
            if cls._local_tag(child.tag) == "v":
                value_text = child.text or ""
                break
        if value_text is None:
            return EMPTY

        if cell_type == "s":
            try:
                return TextCell(shared_strings[int(value_text)])
            except (ValueError, IndexError):
                return TextCell(value_text)
        if cell_type in {"str", "e"}:
            return TextCell(value_text)
        if cell_type == "b":
            return BooleanCell(value_text.strip() in {"1", "true"})
        if cell_type == "d":
            try:
                return DateCell(datetime.fromisoformat(value_text.strip().replace("Z", "+00:00")))
            except ValueError:
                return TextCell(value_text)

        try:
            number = float(value_text)
        except ValueError:
            return TextCell(value_text)
        style_raw = cell_node.attrib.get("s")
        if style_raw is not None and style_raw.isdigit() and int(style_raw) in date_styles and number >= 1:
            try:
                return DateCell(serial_to_calendar(number, date1904=date1904))
            except OverflowError:
                return NumberCell(number)
        return NumberCell(number)

    @staticmethod
    def _cell_ref_to_col_index(cell_ref: str | None) -> int:
        if not cell_ref:
            return 0
        letters = "".join(ch for ch in str(cell_ref) if ch.isalpha()).upper()
        if not letters:
            return 0
        total = 0
        for ch in letters:
            total = total * 26 + (ord(ch) - ord("A") + 1)
        return total

    @staticmethod
    def _local_tag(tag: str) -> str:
        if "}" in tag:
            return tag.split("}", 1)[1]
        return tag

    @classmethod
    def _string_item_text(cls, node: ET.Element) -> str:
        # Plain <t>, or rich-text runs <r><t/></r>; phonetic hints (<rPh>) are skipped.
        parts: list[str] = []
        for child in list(node):
            tag = cls._local_tag(child.tag)
            if tag == "t":
                parts.append(child.text or "")
            elif tag == "r":
                for run_child in list(child):
                    if cls._local_tag(run_child.tag) == "t":
                        parts.append(run_child.text or "")
        return "".join(parts)
