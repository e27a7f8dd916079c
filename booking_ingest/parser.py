"""
Workbook parser for booking-ingest.

Orchestrates one parse:
  1. Read the file bytes (``parse_file`` only).
  2. ``read_workbook()`` -> first worksheet as a ``Sheet``.
  3. Validate the header row and ``resolve_columns()``.
  4. Build a ``ParseContext`` and run ``transform_rows()``.
  5. Fail with ``NoValidRowsError`` when no row survived.

All state of a parse lives in local variables and the ``ParseContext``;
nothing is kept between calls, so independent files can be parsed from
several threads at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from booking_ingest.columns import ColumnIndexTable, resolve_columns
from booking_ingest.config import OUTPUT_COLUMNS, ColumnMapping
from booking_ingest.exceptions import (
    EmptyWorkbookError,
    FileReadError,
    MissingHeaderError,
    NoValidRowsError,
)
from booking_ingest.transforms.records import BookingRecord, ParseContext, transform_rows
from booking_ingest.workbook import Sheet, read_workbook

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Output of one parse.

    Attributes:
        records: One record per kept data row, in sheet order.
        file_name: Display name of the parsed file.
        column_indices: Resolved column index per canonical field.
        rows_total: Number of data rows below the header.
        rows_skipped: Data rows dropped by the row filter.
    """
    records: list[BookingRecord]
    file_name: str
    column_indices: ColumnIndexTable = field(default_factory=dict)
    rows_total: int = 0
    rows_skipped: int = 0

    def to_frame(self) -> pd.DataFrame:
        """The records as a DataFrame with the output columns in export order."""
        return pd.DataFrame(self.records, columns=OUTPUT_COLUMNS)


def parse_sheet(
    sheet: Sheet,
    file_name: str = "",
    mapping: ColumnMapping | None = None,
) -> ParseResult:
    """Parse an in-memory worksheet.

    Args:
        sheet: The worksheet; ``rows[0]`` is the header row.
        file_name: Display name carried into the result.
        mapping: Alias table; defaults to the built-in one.

    Raises:
        EmptyWorkbookError: If the sheet has no rows.
        MissingHeaderError: If the first row is not a row, or blank.
        MissingRequiredColumnError: If the required column is not in the header.
        NoValidRowsError: If every data row was skipped.
    """
    if mapping is None:
        mapping = ColumnMapping()

    if not sheet.rows:
        raise EmptyWorkbookError(f"The workbook '{file_name}' is empty.")

    header = sheet.header
    if not isinstance(header, list) or all(c.is_blank for c in header):
        raise MissingHeaderError(
            f"The file '{file_name}' does not contain a valid header row."
        )

    columns = resolve_columns(header, mapping)
    logger.info("Resolved columns for %s: %s", file_name, columns)

    context = ParseContext(sheet=sheet, columns=columns, mapping=mapping)
    records, skipped = transform_rows(context)

    if not records:
        raise NoValidRowsError(mapping.required_field, mapping.required_aliases)

    return ParseResult(
        records=records,
        file_name=file_name,
        column_indices=dict(columns),
        rows_total=len(sheet.rows) - 1,
        rows_skipped=skipped,
    )


def parse_bytes(
    data: bytes,
    file_name: str,
    mapping: ColumnMapping | None = None,
    media_type: str | None = None,
) -> ParseResult:
    """Parse workbook bytes.

    *file_name*'s extension selects the reader; *media_type* (or the
    container signature) is used for names without a workbook extension.
    """
    sheet = read_workbook(data, file_name, media_type=media_type)
    return parse_sheet(sheet, file_name=file_name, mapping=mapping)


def parse_file(path: str | Path, mapping: ColumnMapping | None = None) -> ParseResult:
    """Read and parse a workbook from disk.

    Raises:
        FileReadError: If the file cannot be read.
    """
    path = Path(path)
    logger.info("Parsing %s", path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FileReadError(
            f"Error reading the file '{path.name}'. Please try again. ({exc})"
        ) from exc
    return parse_bytes(data, path.name, mapping=mapping)
