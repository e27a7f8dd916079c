"""
booking-ingest: convert hotel PMS booking exports (Excel) to a fixed CSV schema.

Public API surface:

- ``convert(path, ...)`` -- **recommended entry point**. Parses a workbook
  and writes the ``Anreise_<date>.csv`` export. Returns the written path.

- ``parse_file(path, ...)`` / ``parse_bytes(data, file_name, ...)`` --
  parse a workbook into a ``ParseResult`` (records + file name) without
  writing anything.

- ``export_csv(records, output_dir, ...)`` -- write records as the
  semicolon-separated export.

- ``check_file_type(file_name, media_type=None)`` -- accept or reject an
  upload before parsing it.
"""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from booking_ingest.config import IngestConfig, default_config, load_config
from booking_ingest.exceptions import UnsupportedFileTypeError
from booking_ingest.export import render_csv, write_export, write_workbook
from booking_ingest.parser import ParseResult, parse_bytes, parse_file
from booking_ingest.workbook import SUPPORTED_EXTENSIONS, SUPPORTED_MEDIA_TYPES

__all__ = [
    "convert",
    "parse_file",
    "parse_bytes",
    "export_csv",
    "render_csv",
    "write_workbook",
    "check_file_type",
    "ParseResult",
]

logger = logging.getLogger(__name__)

def check_file_type(file_name: str, media_type: str | None = None) -> None:
    """Reject files that are neither a known workbook media type nor extension.

    Either criterion is sufficient: browsers and mail clients often send
    ``application/octet-stream`` for perfectly good ``.xlsx`` files.
    Pass the same *media_type* to ``parse_bytes`` for files accepted on
    media type alone.

    Raises:
        UnsupportedFileTypeError: If neither the media type nor the
            extension is supported.
    """
    if media_type is not None and media_type.lower() in SUPPORTED_MEDIA_TYPES:
        return
    if file_name.lower().endswith(tuple(SUPPORTED_EXTENSIONS)):
        return
    raise UnsupportedFileTypeError(
        f"'{file_name}' is not a supported Excel file. "
        f"Please choose a {', '.join(SUPPORTED_EXTENSIONS)} file."
    )


def export_csv(
    records: ParseResult | Sequence[Mapping[str, Any]],
    output_dir: str | Path = "outputs/",
    config: IngestConfig | None = None,
    today: datetime.date | None = None,
) -> Path:
    """Write records (or a ``ParseResult``) as the CSV export.

    Returns:
        Path of the written export file.

    Raises:
        EmptyExportError: If there is nothing to export.
        ExportError: If the file cannot be written.
    """
    if config is None:
        config = default_config()
    if isinstance(records, ParseResult):
        records = records.records
    return write_export(records, output_dir, options=config.output, today=today)


def convert(
    path: str | Path,
    output_dir: str | Path = "outputs/",
    config_path: str | Path | None = None,
    today: datetime.date | None = None,
) -> Path:
    """Parse a workbook and write its CSV export.

    Orchestration:
      1. ``check_file_type()`` on the file name.
      2. ``load_config()`` if *config_path* is given, else the defaults.
      3. ``parse_file()`` -> ``ParseResult``.
      4. ``export_csv()`` into *output_dir*.

    Args:
        path: Path to the ``.xlsx`` / ``.xls`` export.
        output_dir: Directory for the CSV (created if needed).
        config_path: Optional YAML config with custom header aliases.
        today: Export date used in the file name (defaults to today).

    Returns:
        Path of the written CSV file.

    Raises:
        BookingIngestError: Any of its subclasses; nothing is written then.
    """
    path = Path(path)
    logger.info("convert() -- path=%s, output_dir=%s", path, output_dir)

    check_file_type(path.name)
    config = load_config(config_path) if config_path is not None else default_config()

    result = parse_file(path, mapping=config.columns)
    logger.info(
        "Parsed %s: %d records (%d of %d rows skipped)",
        result.file_name,
        len(result.records),
        result.rows_skipped,
        result.rows_total,
    )
    return export_csv(result, output_dir, config=config, today=today)
