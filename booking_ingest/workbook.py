"""
Workbook reader for booking-ingest.

Turns the raw bytes of an uploaded workbook into a ``Sheet``: the first
worksheet as a list of rows of ``Cell`` objects. Nothing downstream
touches openpyxl or xlrd directly.

Cell model:
- ``value`` is the raw cell content (str, int, float, bool or None).
- ``text`` is the display string when the reader has one. Text cells
  carry their string here; numeric cells leave it empty.
- ``is_date`` tags cells that the workbook formats as a date. Their
  ``value`` is the day serial in the 1900 date system (epoch
  1899-12-30), whatever date system the file itself uses.

Supported containers:
- ``.xlsx`` / ``.xlsm``: openpyxl with ``data_only=True`` so formula
  cells yield their cached result.
- ``.xls``: xlrd. Files saved in the 1904 date system are rebased.

The container is chosen by extension, then media type, then by the
leading signature bytes (see ``select_reader``).
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Sequence

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.datetime import to_excel

from booking_ingest.exceptions import (
    EmptyWorkbookError,
    FileReadError,
    UnsupportedFileTypeError,
)

logger = logging.getLogger(__name__)

_OPENPYXL = "openpyxl"
_XLRD = "xlrd"

# file extension -> reader
SUPPORTED_EXTENSIONS: dict[str, str] = {
    ".xlsx": _OPENPYXL,
    ".xlsm": _OPENPYXL,
    ".xls": _XLRD,
}

# upload media type -> reader
SUPPORTED_MEDIA_TYPES: dict[str, str] = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": _OPENPYXL,
    "application/vnd.ms-excel.sheet.macroenabled.12": _OPENPYXL,
    "application/vnd.ms-excel": _XLRD,
}

# container signature -> reader (zip for .xlsx, OLE2 compound file for .xls)
_MAGIC_BYTES: dict[bytes, str] = {
    b"PK\x03\x04": _OPENPYXL,
    b"\xd0\xcf\x11\xe0": _XLRD,
}

# Days between the 1900 and 1904 date system epochs.
_XLS_1904_OFFSET = 1462


@dataclass(frozen=True)
class Cell:
    """One worksheet cell."""
    value: Any = None
    text: str | None = None
    is_date: bool = False

    @property
    def is_blank(self) -> bool:
        if self.value is None:
            return True
        return isinstance(self.value, str) and not self.value.strip()


@dataclass
class Sheet:
    """A worksheet held in memory, addressed by (row, column) pairs.

    Attributes:
        name: Worksheet name.
        rows: Rows in sheet order; ``rows[0]`` is the header row.
    """
    name: str = ""
    rows: list[list[Cell]] = field(default_factory=list)

    @classmethod
    def from_values(cls, grid: Sequence[Any], name: str = "") -> Sheet:
        """Wrap a plain grid of raw values (no display text, no date tags).

        Entries of *grid* that are not lists/tuples are kept as-is so
        that the row filter can skip them.
        """
        rows: list[Any] = []
        for row in grid:
            if isinstance(row, (list, tuple)):
                rows.append([v if isinstance(v, Cell) else Cell(value=v) for v in row])
            else:
                rows.append(row)
        return cls(name=name, rows=rows)

    def cell(self, row: int, col: int) -> Cell | None:
        """Return the cell at (*row*, *col*), or ``None`` outside the sheet."""
        if row < 0 or col < 0 or row >= len(self.rows):
            return None
        cells = self.rows[row]
        if not isinstance(cells, list) or col >= len(cells):
            return None
        return cells[col]

    @property
    def header(self) -> list[Cell] | None:
        return self.rows[0] if self.rows else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def select_reader(data: bytes, file_name: str, media_type: str | None = None) -> str:
    """Pick the reader for an upload: ``"openpyxl"`` or ``"xlrd"``.

    The file extension decides when it is a known workbook extension.
    Otherwise the media type, and last the container signature of *data*
    (uploads often arrive without a usable name).

    Raises:
        UnsupportedFileTypeError: If none of the three identifies a workbook.
    """
    suffix = Path(file_name).suffix.lower()
    if suffix in SUPPORTED_EXTENSIONS:
        return SUPPORTED_EXTENSIONS[suffix]
    if media_type is not None and media_type.lower() in SUPPORTED_MEDIA_TYPES:
        return SUPPORTED_MEDIA_TYPES[media_type.lower()]
    for magic, reader in _MAGIC_BYTES.items():
        if data.startswith(magic):
            logger.debug("Detected %s container for %s", reader, file_name)
            return reader
    raise UnsupportedFileTypeError(
        f"Unsupported file type '{suffix or file_name}'. "
        f"Supported: {', '.join(SUPPORTED_EXTENSIONS)}"
    )


def read_workbook(data: bytes, file_name: str, media_type: str | None = None) -> Sheet:
    """Read the first worksheet of a workbook.

    Args:
        data: The raw file bytes.
        file_name: Original file name; its extension selects the reader.
        media_type: Upload media type, used when the name has no known
            workbook extension.

    Returns:
        The first worksheet with trailing empty rows removed.

    Raises:
        UnsupportedFileTypeError: If the input is not a workbook format.
        FileReadError: If the bytes cannot be opened as a workbook.
        EmptyWorkbookError: If there is no worksheet, or it has no rows.
    """
    if select_reader(data, file_name, media_type) == _OPENPYXL:
        sheet = _read_openpyxl(data, file_name)
    else:
        sheet = _read_xlrd(data, file_name)

    sheet.rows = _trim_trailing_blank_rows(sheet.rows)
    if not sheet.rows:
        raise EmptyWorkbookError(f"The workbook '{file_name}' is empty.")

    logger.info(
        "Read sheet '%s' from %s: %d rows x %d columns",
        sheet.name,
        file_name,
        len(sheet.rows),
        max(len(r) for r in sheet.rows),
    )
    return sheet


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _trim_trailing_blank_rows(rows: list[list[Cell]]) -> list[list[Cell]]:
    end = len(rows)
    while end > 0 and all(c.is_blank for c in rows[end - 1]):
        end -= 1
    return rows[:end]


# -- openpyxl (.xlsx) -------------------------------------------------------

def _read_openpyxl(data: bytes, file_name: str) -> Sheet:
    try:
        wb = load_workbook(BytesIO(data), read_only=False, data_only=True)
    except Exception as exc:
        raise FileReadError(
            f"Could not read '{file_name}' as an Excel workbook: {exc}"
        ) from exc

    try:
        if not wb.worksheets:
            raise EmptyWorkbookError(f"The workbook '{file_name}' contains no sheets.")
        ws = wb.worksheets[0]
        rows = [
            [_cell_from_openpyxl(c) for c in row]
            for row in ws.iter_rows()
        ]
        return Sheet(name=ws.title, rows=rows)
    finally:
        wb.close()


def _cell_from_openpyxl(cell: Any) -> Cell:
    value = cell.value
    if value is None:
        return Cell()
    if isinstance(value, datetime.time):
        return Cell(value=to_excel(value), text=value.isoformat())
    if isinstance(value, (datetime.datetime, datetime.date)):
        # Always rebase on the 1900 epoch, the date normalizer assumes it.
        return Cell(value=to_excel(value), is_date=True)
    if isinstance(value, datetime.timedelta):
        return Cell(value=to_excel(value), text=str(value))
    if isinstance(value, str):
        return Cell(value=value, text=value)
    return Cell(value=value)


# -- xlrd (.xls) ------------------------------------------------------------

def _read_xlrd(data: bytes, file_name: str) -> Sheet:
    try:
        book = xlrd.open_workbook(file_contents=data)
    except Exception as exc:
        raise FileReadError(
            f"Could not read '{file_name}' as an Excel 97-2003 workbook: {exc}"
        ) from exc

    if book.nsheets == 0:
        raise EmptyWorkbookError(f"The workbook '{file_name}' contains no sheets.")
    ws = book.sheet_by_index(0)
    rows = [
        [_cell_from_xlrd(c, book.datemode) for c in ws.row(r)]
        for r in range(ws.nrows)
    ]
    return Sheet(name=ws.name, rows=rows)


def _cell_from_xlrd(cell: Any, datemode: int) -> Cell:
    ctype = cell.ctype
    if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return Cell()
    if ctype == xlrd.XL_CELL_TEXT:
        return Cell(value=cell.value, text=cell.value)
    if ctype == xlrd.XL_CELL_DATE:
        serial = cell.value + _XLS_1904_OFFSET if datemode == 1 else cell.value
        return Cell(value=serial, is_date=True)
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return Cell(value=bool(cell.value))
    if ctype == xlrd.XL_CELL_ERROR:
        text = xlrd.error_text_from_code.get(cell.value, "#ERR")
        return Cell(value=text, text=text)
    return Cell(value=cell.value)
