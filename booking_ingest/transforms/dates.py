"""
Date normalization for booking-ingest.

PMS exports store arrival/departure either as real date cells (a day
serial with a date number format), as plain numbers, or as text that
was typed in already formatted. All of them end up as ``DD.MM.YYYY``.

Spreadsheet date serials count days from 1899-12-30. Anchoring the
epoch there (instead of 1900-01-01) absorbs the fictitious 1900-02-29
of the 1900 date system, so no separate leap-year correction is
applied. Fractional serials carry the time of day, which is dropped.

Resolution order for one cell (first match wins):

1. display text already shaped ``DD.MM.YYYY`` -> used verbatim;
2. numeric value with ``1 < v < 1_000_000`` -> serial conversion;
3. any display text -> used verbatim;
4. raw text that is a number in that range -> serial conversion;
5. the trimmed raw text;
6. nothing at all -> ``""``.

The numeric range is a heuristic; it is only applied to fields declared
with ``type: date`` in the column mapping.
"""

from __future__ import annotations

import datetime
import re

from booking_ingest.transforms.values import parse_float, render_value
from booking_ingest.workbook import Cell

EPOCH = datetime.datetime(1899, 12, 30)

# Exclusive bounds of values treated as day serials.
SERIAL_MIN = 1
SERIAL_MAX = 1_000_000

_CANONICAL_DATE = re.compile(r"^\d{2}\.\d{2}\.\d{4}$")


def is_serial(value: object) -> bool:
    """True for real numbers inside the date-serial range."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return SERIAL_MIN < value < SERIAL_MAX


def serial_to_date(serial: float) -> datetime.datetime | None:
    """Convert a day serial to a datetime, or ``None`` if it is not representable."""
    try:
        return EPOCH + datetime.timedelta(days=serial)
    except (OverflowError, ValueError, TypeError):
        return None


def format_date(value: datetime.date | None) -> str:
    """Format as ``DD.MM.YYYY``; ``None`` formats to ``""``."""
    if value is None:
        return ""
    return f"{value.day:02d}.{value.month:02d}.{value.year}"


def serial_to_text(serial: float) -> str:
    return format_date(serial_to_date(serial))


def normalize_date(cell: Cell | None) -> str:
    """Normalize one date cell to ``DD.MM.YYYY`` (see module docstring)."""
    if cell is None:
        return ""

    text = cell.text.strip() if cell.text is not None else None
    if text and _CANONICAL_DATE.match(text):
        return text

    if is_serial(cell.value):
        return serial_to_text(cell.value)

    if text:
        return text

    if cell.value is None:
        return ""

    raw = render_value(cell.value).strip()
    if isinstance(cell.value, str):
        number = parse_float(raw)
        if number is not None and is_serial(number):
            return serial_to_text(number)
    return raw
