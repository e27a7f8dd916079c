"""
Row filter and record builder for booking-ingest.

Every data row (all rows after the header) is either dropped or turned
into one ``BookingRecord`` with the fixed 10-field output schema:

- Rows that are not sequences are skipped silently.
- Rows whose required field (``BookingNumber``) is blank after trimming
  are skipped silently. Exports often carry subtotal or spacer rows.
- Kept rows are transformed field by field according to the declared
  column type (text / integer / date).

Field rules:
- text: rendered cell text, trimmed; unresolved column -> ``""``.
- date: see ``transforms.dates.normalize_date``.
- integer: leading-integer parse; anything unparseable -> ``""`` (never 0).
- ``BookingNumber``: exactly one leading ``'0'`` is removed.
- ``Id`` = final ``BookingNumber``; ``NumberOfTeens`` / ``NumberOfBabys`` = 0.

Whether *no* row survives is decided by the caller (``parser.py``),
which turns that into ``NoValidRowsError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TypedDict, Union

from booking_ingest.config import OUTPUT_COLUMNS, SYNTHETIC_FIELDS, ColumnMapping
from booking_ingest.transforms.dates import normalize_date
from booking_ingest.transforms.values import (
    parse_integer,
    render_value,
    strip_leading_zero,
)
from booking_ingest.workbook import Cell, Sheet

logger = logging.getLogger(__name__)

# The field whose single leading zero is removed.
BOOKING_NUMBER_FIELD = "BookingNumber"


class BookingRecord(TypedDict):
    """One output row. Integer fields are ``""`` when the source was unparseable."""
    Id: str
    BookingNumber: str
    OTANumber: str
    Name: str
    NumberOfAdults: Union[int, str]
    NumberOfTeens: int
    NumberOfChildren: Union[int, str]
    NumberOfBabys: int
    DateFrom: str
    DateTo: str


@dataclass(frozen=True)
class ParseContext:
    """Per-workbook state, created fresh for every parse call.

    Attributes:
        sheet: The worksheet being parsed.
        columns: Resolved column index per canonical field (``None`` if absent).
        mapping: The alias table the columns were resolved with.
    """
    sheet: Sheet
    columns: dict[str, int | None]
    mapping: ColumnMapping

    def cell(self, row_index: int, field_name: str) -> Cell | None:
        """Return the cell of *field_name* in row *row_index*, if the column exists."""
        col = self.columns.get(field_name)
        if col is None:
            return None
        return self.sheet.cell(row_index, col)

    def text(self, row_index: int, field_name: str) -> str:
        """Trimmed text of a field's cell; ``""`` for absent cells/columns."""
        cell = self.cell(row_index, field_name)
        if cell is None:
            return ""
        return render_value(cell.value).strip()


def empty_record() -> dict[str, object]:
    """A record with every output field at its default."""
    record: dict[str, object] = {name: "" for name in OUTPUT_COLUMNS}
    record.update(SYNTHETIC_FIELDS)
    return record


def build_record(context: ParseContext, row_index: int) -> BookingRecord:
    """Build the output record for one kept row."""
    record = empty_record()

    for field_name, spec in context.mapping.mapping.items():
        if context.columns.get(field_name) is None:
            continue

        if spec.type == "date":
            record[field_name] = normalize_date(context.cell(row_index, field_name))
            continue

        text = context.text(row_index, field_name)
        if field_name == BOOKING_NUMBER_FIELD:
            text = strip_leading_zero(text)

        if spec.type == "integer":
            number = parse_integer(text)
            record[field_name] = "" if number is None else number
        else:
            record[field_name] = text

    record["Id"] = record[BOOKING_NUMBER_FIELD] or ""
    return record  # type: ignore[return-value]


def transform_rows(context: ParseContext) -> tuple[list[BookingRecord], int]:
    """Filter and transform every data row of the sheet.

    Returns:
        Tuple of (records in row order, number of rows skipped).
    """
    required = context.mapping.required_field
    records: list[BookingRecord] = []
    skipped = 0

    for row_index in range(1, len(context.sheet.rows)):
        if not isinstance(context.sheet.rows[row_index], list):
            skipped += 1
            continue
        if not context.text(row_index, required):
            skipped += 1
            continue
        records.append(build_record(context, row_index))

    logger.info(
        "Transformed %d rows (%d skipped without %s)",
        len(records),
        skipped,
        required,
    )
    return records, skipped
