from __future__ import annotations

from io import BytesIO
from typing import List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from ..collection import Collection
from ..entry import Entry
from ..field import Field, FieldType
from .base import TranslatorBase, selected_entries


# sheet titles are limited to 31 characters and a few symbols
_BAD_TITLE_CHARS = str.maketrans({c: "_" for c in "[]:*?/\\"})


def _autosize(ws, max_width: int = 70) -> None:
    for col_idx in range(1, ws.max_column + 1):
        max_len = 0
        for row_idx in range(1, ws.max_row + 1):
            v = ws.cell(row=row_idx, column=col_idx).value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[get_column_letter(col_idx)].width = max(10, min(max_len + 2, max_width))


def _style_header(ws, header_row: int = 1) -> None:
    header_font = Font(bold=True)
    header_fill = PatternFill(start_color="FFF2F2F2", end_color="FFF2F2F2", fill_type="solid")
    header_align = Alignment(vertical="top", wrap_text=True)

    for c in range(1, ws.max_column + 1):
        cell = ws.cell(row=header_row, column=c)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_align

    ws.freeze_panes = "A2"


def _cell_value(entry: Entry, f: Field, formatted: bool):
    if f.type == FieldType.BOOL:
        return "Y" if entry.is_checked(f.name) else None
    text = entry.field(f.name, formatted=formatted)
    if not text:
        return None
    if f.type == FieldType.NUMBER and text.isdigit():
        return int(text)
    if f.type == FieldType.TABLE:
        # one row per line, columns separated by " - "
        return "\n".join(" - ".join(c for c in row if c) for row in entry.table_rows(f.name))
    return text


class SpreadsheetExporter(TranslatorBase):
    """
    One header row of field titles, then one row per entry. Image fields
    are left out.
    """

    format_id = "xlsx"
    extension = "xlsx"

    def __init__(self, *, formatted: bool = True, fields: Optional[Sequence[str]] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.formatted = formatted
        self.field_names = list(fields) if fields else None

    def _columns(self, coll: Collection) -> List[Field]:
        if self.field_names is not None:
            return [f for f in (coll.field_by_name(n) for n in self.field_names) if f is not None]
        return [f for f in coll.fields if f.type != FieldType.IMAGE]

    def workbook(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> Workbook:
        columns = self._columns(coll)
        chosen = selected_entries(coll, entries)

        wb = Workbook()
        ws = wb.active
        ws.title = (coll.title or "entries").translate(_BAD_TITLE_CHARS)[:31]
        ws.append([f.title for f in columns])

        wrap = Alignment(vertical="top", wrap_text=True)
        total = len(chosen)
        for i, entry in enumerate(chosen, 1):
            ws.append([_cell_value(entry, f, self.formatted) for f in columns])
            self._step(i, total)

        _style_header(ws)
        for row in ws.iter_rows(min_row=2, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
            for cell in row:
                cell.alignment = wrap
        _autosize(ws)
        self._finish()
        return wb

    def export(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> bytes:
        buf = BytesIO()
        self.workbook(coll, entries).save(buf)
        return buf.getvalue()
