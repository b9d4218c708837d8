"""Builds small .xlsx files in memory for tests.

Cell values: None leaves the cell out, str becomes a shared string, bool a
boolean, int/float a number, date/datetime a date-styled serial, and a dict
is written as raw cell attributes ({"t": ..., "v": ...} or {"inline": ...}).
A row given as None is left out of the sheet XML entirely.
"""

from __future__ import annotations

import io
import zipfile
from datetime import date, datetime
from xml.sax.saxutils import escape, quoteattr

_MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"

# cellXfs indexes written to styles.xml
STYLE_DEFAULT = 0
STYLE_BUILTIN_DATE = 1
STYLE_CUSTOM_DATE = 2
STYLE_PERCENT = 3
STYLE_TIME = 4


def column_letter(index: int) -> str:
    letters = ""
    while index > 0:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def date_serial(value: date | datetime, *, date1904: bool = False) -> float:
    epoch = datetime(1904, 1, 1) if date1904 else datetime(1899, 12, 30)
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    delta = value - epoch
    return delta.days + delta.seconds / 86400


def build_xlsx(
    sheets: dict[str, list[list[object] | None]],
    *,
    date1904: bool = False,
    date_style: int = STYLE_BUILTIN_DATE,
) -> bytes:
    shared: list[str] = []
    shared_index: dict[str, int] = {}

    def shared_id(text: str) -> int:
        if text not in shared_index:
            shared_index[text] = len(shared)
            shared.append(text)
        return shared_index[text]

    sheet_xml: list[str] = []
    for rows in sheets.values():
        row_parts: list[str] = []
        for row_idx, row in enumerate(rows, start=1):
            if row is None:
                continue
            cells: list[str] = []
            for col_idx, value in enumerate(row, start=1):
                if value is None:
                    continue
                ref = f"{column_letter(col_idx)}{row_idx}"
                cells.append(_cell_xml(ref, value, shared_id, date1904=date1904, date_style=date_style))
            row_parts.append(f'<row r="{row_idx}">{"".join(cells)}</row>')
        sheet_xml.append(
            f'<?xml version="1.0" encoding="UTF-8"?>'
            f'<worksheet xmlns="{_MAIN_NS}"><sheetData>{"".join(row_parts)}</sheetData></worksheet>'
        )

    sheet_entries = "".join(
        f'<sheet name={quoteattr(name)} sheetId="{idx}" r:id="rId{idx}"/>'
        for idx, name in enumerate(sheets.keys(), start=1)
    )
    workbook_pr = '<workbookPr date1904="1"/>' if date1904 else "<workbookPr/>"
    workbook_xml = (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<workbook xmlns="{_MAIN_NS}" xmlns:r="{_REL_NS}">{workbook_pr}<sheets>{sheet_entries}</sheets></workbook>'
    )
    rels = "".join(
        f'<Relationship Id="rId{idx}" Type="{_REL_NS}/worksheet" Target="worksheets/sheet{idx}.xml"/>'
        for idx in range(1, len(sheets) + 1)
    )
    rels_xml = f'<?xml version="1.0" encoding="UTF-8"?><Relationships xmlns="{_PKG_REL_NS}">{rels}</Relationships>'
    shared_xml = (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<sst xmlns="{_MAIN_NS}" count="{len(shared)}" uniqueCount="{len(shared)}">'
        + "".join(f'<si><t xml:space="preserve">{escape(text)}</t></si>' for text in shared)
        + "</sst>"
    )
    styles_xml = (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<styleSheet xmlns="{_MAIN_NS}">'
        '<numFmts count="1"><numFmt numFmtId="164" formatCode="yyyy\\-mm\\-dd;@"/></numFmts>'
        '<cellXfs count="5">'
        '<xf numFmtId="0" fontId="0" fillId="0" borderId="0" xfId="0"/>'
        '<xf numFmtId="14" fontId="0" fillId="0" borderId="0" xfId="0" applyNumberFormat="1"/>'
        '<xf numFmtId="164" fontId="0" fillId="0" borderId="0" xfId="0" applyNumberFormat="1"/>'
        '<xf numFmtId="10" fontId="0" fillId="0" borderId="0" xfId="0" applyNumberFormat="1"/>'
        '<xf numFmtId="20" fontId="0" fillId="0" borderId="0" xfId="0" applyNumberFormat="1"/>'
        "</cellXfs></styleSheet>"
    )

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", '<?xml version="1.0" encoding="UTF-8"?><Types/>')
        archive.writestr("xl/workbook.xml", workbook_xml)
        archive.writestr("xl/_rels/workbook.xml.rels", rels_xml)
        archive.writestr("xl/sharedStrings.xml", shared_xml)
        archive.writestr("xl/styles.xml", styles_xml)
        for idx, xml in enumerate(sheet_xml, start=1):
            archive.writestr(f"xl/worksheets/sheet{idx}.xml", xml)
    return buffer.getvalue()


def _cell_xml(ref: str, value: object, shared_id, *, date1904: bool, date_style: int) -> str:
    if isinstance(value, dict):
        if "inline" in value:
            return f'<c r="{ref}" t="inlineStr"><is><t>{escape(str(value["inline"]))}</t></is></c>'
        attrs = f' t="{value["t"]}"' if "t" in value else ""
        if "s" in value:
            attrs += f' s="{value["s"]}"'
        inner = f'<v>{escape(str(value["v"]))}</v>' if "v" in value else ""
        return f'<c r="{ref}"{attrs}>{inner}</c>'
    if isinstance(value, bool):
        return f'<c r="{ref}" t="b"><v>{1 if value else 0}</v></c>'
    if isinstance(value, (date, datetime)):
        return f'<c r="{ref}" s="{date_style}"><v>{date_serial(value, date1904=date1904)}</v></c>'
    if isinstance(value, (int, float)):
        return f'<c r="{ref}"><v>{value}</v></c>'
    return f'<c r="{ref}" t="s"><v>{shared_id(str(value))}</v></c>'
