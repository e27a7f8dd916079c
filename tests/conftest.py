"""
Shared test fixtures for booking-ingest tests.

Workbooks are generated on the fly with openpyxl into ``tmp_path``, so
no input files are checked in. ``make_xlsx`` is the factory fixture;
``HOTEL_HEADER`` / ``HOTEL_ROWS`` describe a typical PMS arrival export.
"""

import datetime
from io import BytesIO
from pathlib import Path

import pytest
from openpyxl import Workbook

# ---------------------------------------------------------------------------
# Sample data -- a typical PMS arrival export
# ---------------------------------------------------------------------------
HOTEL_HEADER = [
    "Reservation Num", "Voucher", "Main Guest", "AD", "CH", "Arrival", "Departure",
]

HOTEL_ROWS = [
    ["0012345", "V1", "J. Doe", 2, 1, datetime.datetime(2023, 3, 15), datetime.datetime(2023, 3, 20)],
    ["0054321", "BDC-778", "Müller; Hans", 1, 0, datetime.datetime(2023, 3, 16), datetime.datetime(2023, 3, 18)],
    [None, None, "Subtotal", 3, 1, None, None],
    ["0099999", None, 'Anna "Ann" Lee', "n/a", None, "17.03.2023", "19.03.2023"],
]


def build_xlsx_bytes(rows: list[list], sheet_title: str = "Arrivals") -> bytes:
    """Serialize *rows* as a single-sheet .xlsx workbook."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    for row in rows:
        ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture()
def make_xlsx(tmp_path):
    """Factory: ``make_xlsx(rows, name="export.xlsx") -> Path``."""

    def _make(rows: list[list], name: str = "export.xlsx") -> Path:
        path = tmp_path / name
        path.write_bytes(build_xlsx_bytes(rows))
        return path

    return _make


@pytest.fixture()
def hotel_xlsx(make_xlsx) -> Path:
    return make_xlsx([HOTEL_HEADER, *HOTEL_ROWS], name="arrivals.xlsx")


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (reads and writes real workbook files)",
    )
