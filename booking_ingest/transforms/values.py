"""
Scalar value rules for booking-ingest.

Worksheet cells arrive as str / int / float / bool / None. These helpers
turn them into the text and integer values of the output record:

- ``render_value``: cell value -> text, formatted the way a spreadsheet
  shows it in the General number format (``12345.0`` -> ``"12345"``).
- ``parse_integer``: leading-integer parse (``"2"``, ``"2.0"``, ``" 3 "``);
  returns ``None`` when the text does not start with digits.
- ``parse_float``: strict decimal parse of the whole (trimmed) text.
- ``strip_leading_zero``: removes exactly one leading ``"0"``.
"""

from __future__ import annotations

import math
import re
from typing import Any

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def render_value(value: Any) -> str:
    """Render a raw cell value as text (not trimmed)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def parse_integer(text: str) -> int | None:
    """Parse the integer at the start of *text*, or return ``None``."""
    m = _LEADING_INT.match(text)
    if m is None:
        return None
    return int(m.group(1))


def parse_float(text: str) -> float | None:
    """Parse *text* as a finite decimal number, or return ``None``."""
    try:
        number = float(text.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def strip_leading_zero(text: str) -> str:
    """Remove exactly one leading ``'0'`` (``"0012"`` -> ``"012"``)."""
    return text[1:] if text.startswith("0") else text
