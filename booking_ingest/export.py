"""
Exporter for booking-ingest.

Renders booking records as delimited text and writes the export file.

Text format (defaults from ``OutputConfig``):
  - Fixed column order: ``OUTPUT_COLUMNS``.
  - Semicolon delimiter, the separator German Excel expects.
  - A value is quoted (embedded quotes doubled) only if it contains the
    delimiter, a double quote, CR or LF; the header follows the same rule.
  - Lines joined with CRLF, no terminator after the last line.

File format:
  - UTF-8 with BOM so that Excel detects the encoding.
  - Named ``Anreise_DD.MM.YYYY.csv`` after the export date.

``write_workbook`` additionally produces a formatted ``.xlsx`` copy of
the same table for users who open the data in Excel directly.
"""

from __future__ import annotations

import csv
import datetime
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment

from booking_ingest.config import OUTPUT_COLUMNS, OutputConfig
from booking_ingest.exceptions import EmptyExportError, ExportError

logger = logging.getLogger(__name__)

_BOM = "\ufeff"

# Column widths (in characters) of the .xlsx export.
_XLSX_WIDTHS = {
    "Id": 15,
    "BookingNumber": 15,
    "OTANumber": 15,
    "Name": 25,
    "NumberOfAdults": 12,
    "NumberOfTeens": 12,
    "NumberOfChildren": 12,
    "NumberOfBabys": 12,
    "DateFrom": 12,
    "DateTo": 12,
}
_XLSX_CENTERED = ("Id", "BookingNumber", "OTANumber")


def _to_frame(records: Sequence[Mapping[str, Any]] | pd.DataFrame) -> pd.DataFrame:
    # object dtype keeps ints as ints next to missing values (no "2.0")
    if isinstance(records, pd.DataFrame):
        df = records.reindex(columns=OUTPUT_COLUMNS)
        for col in df.columns:
            if pd.api.types.is_float_dtype(df[col]) and (df[col].dropna() % 1 == 0).all():
                df[col] = df[col].astype("Int64")
        df = df.astype(object)
    else:
        df = pd.DataFrame(list(records), columns=OUTPUT_COLUMNS, dtype=object)
    if df.empty:
        raise EmptyExportError("No data available for export.")
    return df


def render_csv(
    records: Sequence[Mapping[str, Any]] | pd.DataFrame,
    options: OutputConfig | None = None,
) -> str:
    """Render records as delimited text with a header line.

    Args:
        records: Records with the output schema keys (missing keys and
            ``None`` render as empty), or a DataFrame with those columns.
        options: Delimiter / line terminator; defaults to ``OutputConfig()``.

    Returns:
        The export text without BOM and without a trailing line terminator.

    Raises:
        EmptyExportError: If *records* is empty.
    """
    if options is None:
        options = OutputConfig()
    df = _to_frame(records)

    text = df.to_csv(
        index=False,
        sep=options.delimiter,
        lineterminator=options.line_terminator,
        quoting=csv.QUOTE_MINIMAL,
        quotechar='"',
        doublequote=True,
        na_rep="",
    )
    if text.endswith(options.line_terminator):
        text = text[: -len(options.line_terminator)]
    return text


def encode_export(text: str, options: OutputConfig | None = None) -> bytes:
    """Encode export text as UTF-8, with BOM unless disabled."""
    if options is None:
        options = OutputConfig()
    if options.write_bom:
        text = _BOM + text
    return text.encode("utf-8")


def export_filename(
    today: datetime.date | None = None,
    options: OutputConfig | None = None,
) -> str:
    """File name of an export made on *today* (defaults to the current date)."""
    if options is None:
        options = OutputConfig()
    if today is None:
        today = datetime.date.today()
    return f"{options.file_prefix}{today.strftime(options.date_stamp_format)}{options.extension}"


def write_export(
    records: Sequence[Mapping[str, Any]] | pd.DataFrame,
    output_dir: str | Path,
    options: OutputConfig | None = None,
    today: datetime.date | None = None,
) -> Path:
    """Render records and write them to ``output_dir/<export file name>``.

    The output directory is created recursively if it does not exist.
    An existing export of the same day is overwritten.

    Returns:
        Path of the written file.

    Raises:
        EmptyExportError: If *records* is empty.
        ExportError: If writing the file fails.
    """
    if options is None:
        options = OutputConfig()
    payload = encode_export(render_csv(records, options), options)

    out = Path(output_dir)
    path = out / export_filename(today, options)
    try:
        out.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
    except OSError as exc:
        raise ExportError(f"Failed to write {path.name}: {exc}") from exc

    logger.info("Exported %d records -> %s (%d bytes)", len(records), path, len(payload))
    return path


def write_workbook(
    records: Sequence[Mapping[str, Any]] | pd.DataFrame,
    path: str | Path,
    sheet_name: str = "Daten",
) -> Path:
    """Write records as a formatted ``.xlsx`` table.

    Columns get fixed widths and the identifier columns (``Id``,
    ``BookingNumber``, ``OTANumber``) are centered, header included.

    Raises:
        EmptyExportError: If *records* is empty.
        ExportError: If writing the file fails.
    """
    df = _to_frame(records).fillna("")
    path = Path(path)

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(OUTPUT_COLUMNS)
    for row in df.itertuples(index=False):
        ws.append([_plain(v) for v in row])

    centered = Alignment(horizontal="center", vertical="center")
    for col_idx, name in enumerate(OUTPUT_COLUMNS, start=1):
        letter = ws.cell(row=1, column=col_idx).column_letter
        ws.column_dimensions[letter].width = _XLSX_WIDTHS[name]
        if name in _XLSX_CENTERED:
            for (cell,) in ws.iter_rows(min_col=col_idx, max_col=col_idx):
                cell.alignment = centered

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(path)
    except OSError as exc:
        raise ExportError(f"Failed to write {path.name}: {exc}") from exc

    logger.info("Exported %d records -> %s", len(df), path)
    return path


def _plain(value: Any) -> Any:
    """numpy scalars -> Python scalars, which openpyxl can store; "" -> empty cell."""
    if isinstance(value, str):
        return value or None
    return value.item() if hasattr(value, "item") else value
