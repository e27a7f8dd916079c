"""
Header resolution for booking-ingest.

Maps every canonical field of the ``ColumnMapping`` to the position of
its column in the header row. Sources label the same column differently
("Reservation Number" vs "Reservation Num"), so each field carries a
list of aliases; the first alias that occurs in the header wins.

Matching is exact after trimming whitespace and lower-casing both
sides. When several header cells match one alias, the leftmost is used.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from booking_ingest.config import ColumnMapping
from booking_ingest.exceptions import MissingRequiredColumnError
from booking_ingest.transforms.values import render_value
from booking_ingest.workbook import Cell

logger = logging.getLogger(__name__)

# canonical field -> column index, or None if no alias matched
ColumnIndexTable = dict[str, int | None]


def _normalize_label(label: Any) -> str:
    if isinstance(label, Cell):
        label = label.value
    return render_value(label).strip().lower()


def find_column_index(header: Sequence[Any], name: str) -> int | None:
    """Return the index of the leftmost header cell matching *name*."""
    wanted = name.strip().lower()
    for i, label in enumerate(header):
        if _normalize_label(label) == wanted:
            return i
    return None


def header_labels(header: Sequence[Any]) -> list[str]:
    """Return the non-blank header labels, trimmed, in column order."""
    labels = []
    for label in header:
        if isinstance(label, Cell):
            label = label.value
        text = render_value(label).strip()
        if text:
            labels.append(text)
    return labels


def resolve_columns(header: Sequence[Any], mapping: ColumnMapping) -> ColumnIndexTable:
    """Resolve the column index of every mapped field.

    Args:
        header: The header row; raw values or ``Cell`` objects.
        mapping: The alias table.

    Returns:
        Dict mapping canonical field name -> column index, ``None`` for
        fields whose aliases are all absent.

    Raises:
        MissingRequiredColumnError: If the required field is unresolved.
    """
    indices: ColumnIndexTable = {}
    for field_name, spec in mapping.mapping.items():
        found = None
        for alias in spec.aliases:
            found = find_column_index(header, alias)
            if found is not None:
                break
        indices[field_name] = found
        logger.debug("Column %s -> %s", field_name, found)

    if indices[mapping.required_field] is None:
        raise MissingRequiredColumnError(
            field=mapping.required_field,
            accepted_aliases=mapping.required_aliases,
            headers_found=header_labels(header),
        )

    unresolved = [name for name, idx in indices.items() if idx is None]
    if unresolved:
        logger.info("Columns not found in header (left empty): %s", unresolved)
    return indices
