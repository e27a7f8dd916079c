"""
Unit tests for the row filter and record builder
(booking_ingest.transforms.records) and for parse_sheet()
(booking_ingest.parser), using in-memory sheets only.
"""

from __future__ import annotations

import threading

import pytest

from booking_ingest.columns import resolve_columns
from booking_ingest.config import OUTPUT_COLUMNS, ColumnMapping, ColumnSpec
from booking_ingest.exceptions import (
    EmptyWorkbookError,
    MissingHeaderError,
    MissingRequiredColumnError,
    NoValidRowsError,
)
from booking_ingest.parser import parse_sheet
from booking_ingest.transforms.records import (
    ParseContext,
    build_record,
    empty_record,
    transform_rows,
)
from booking_ingest.workbook import Cell, Sheet

HEADER = ["Reservation Num", "Voucher", "Main Guest", "AD", "CH", "Arrival", "Departure"]


def _context(grid: list, mapping: ColumnMapping | None = None) -> ParseContext:
    mapping = mapping or ColumnMapping()
    sheet = Sheet.from_values(grid)
    columns = resolve_columns(sheet.header, mapping)
    return ParseContext(sheet=sheet, columns=columns, mapping=mapping)


# ---------------------------------------------------------------------------
# build_record
# ---------------------------------------------------------------------------

class TestBuildRecord:
    """Field-level rules for one kept row."""

    def test_reference_row(self):
        ctx = _context([HEADER, ["0012345", "V1", "J. Doe", 2, 1, 45000, 45005]])
        record = build_record(ctx, 1)
        assert record == {
            "Id": "012345",
            "BookingNumber": "012345",
            "OTANumber": "V1",
            "Name": "J. Doe",
            "NumberOfAdults": 2,
            "NumberOfTeens": 0,
            "NumberOfChildren": 1,
            "NumberOfBabys": 0,
            "DateFrom": "15.03.2023",
            "DateTo": "20.03.2023",
        }
        assert list(record) == OUTPUT_COLUMNS

    @pytest.mark.parametrize(
        "raw, expected",
        [("0012345", "012345"), ("12345", "12345"), ("0", ""), (12345.0, "12345"), (" 0777 ", "777")],
    )
    def test_booking_number_single_zero_strip(self, raw, expected):
        ctx = _context([HEADER, [raw]])
        record = build_record(ctx, 1)
        assert record["BookingNumber"] == expected
        assert record["Id"] == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [(2, 2), (2.0, 2), ("3", 3), (" 4 ", 4), ("n/a", ""), ("", ""), (None, "")],
    )
    def test_integer_fields(self, raw, expected):
        ctx = _context([HEADER, ["1", "", "", raw, raw]])
        record = build_record(ctx, 1)
        assert record["NumberOfAdults"] == expected
        assert record["NumberOfChildren"] == expected

    def test_unresolved_columns_default(self):
        ctx = _context([["Reservation Number"], ["42"]])
        record = build_record(ctx, 1)
        assert record == {
            "Id": "42",
            "BookingNumber": "42",
            "OTANumber": "",
            "Name": "",
            "NumberOfAdults": "",
            "NumberOfTeens": 0,
            "NumberOfChildren": "",
            "NumberOfBabys": 0,
            "DateFrom": "",
            "DateTo": "",
        }

    def test_short_row_fills_empty(self):
        ctx = _context([HEADER, ["7", "V7"]])
        record = build_record(ctx, 1)
        assert record["Name"] == ""
        assert record["DateTo"] == ""

    def test_text_fields_are_trimmed(self):
        ctx = _context([HEADER, ["1", "  V9 ", "  Jane  "]])
        record = build_record(ctx, 1)
        assert record["OTANumber"] == "V9"
        assert record["Name"] == "Jane"

    def test_date_cells_use_display_text(self):
        row = [
            Cell(value="5", text="5"),
            Cell(),
            Cell(),
            Cell(),
            Cell(),
            Cell(value=45000, text="16.03.2023", is_date=True),
            Cell(value="tomorrow", text="tomorrow"),
        ]
        ctx = _context([HEADER, row])
        record = build_record(ctx, 1)
        assert record["DateFrom"] == "16.03.2023"
        assert record["DateTo"] == "tomorrow"

    def test_declared_date_type_drives_normalization(self):
        """A numeric column is only treated as a date when declared so."""
        mapping = ColumnMapping(
            mapping={
                "BookingNumber": ColumnSpec(aliases=["Res"]),
                "Name": ColumnSpec(aliases=["Guest"]),
                "DateFrom": ColumnSpec(aliases=["In"], type="date"),
            }
        )
        ctx = _context([["Res", "Guest", "In"], ["1", 45000, 45000]], mapping)
        record = build_record(ctx, 1)
        assert record["Name"] == "45000"
        assert record["DateFrom"] == "15.03.2023"

    def test_empty_record_defaults(self):
        record = empty_record()
        assert list(record) == OUTPUT_COLUMNS
        assert record["NumberOfTeens"] == 0
        assert record["NumberOfBabys"] == 0
        assert record["Name"] == ""


# ---------------------------------------------------------------------------
# transform_rows
# ---------------------------------------------------------------------------

class TestTransformRows:
    """Row filtering keeps order and counts skipped rows."""

    def test_blank_required_rows_are_skipped(self):
        ctx = _context([
            HEADER,
            ["A1", "V1"],
            ["", "V2"],
            ["   ", "V3"],
            [None, "V4"],
            ["A5", "V5"],
        ])
        records, skipped = transform_rows(ctx)
        assert [r["BookingNumber"] for r in records] == ["A1", "A5"]
        assert skipped == 3

    def test_non_sequence_rows_are_skipped(self):
        ctx = _context([HEADER, None, "garbage", ["A1"], 42, ["A2"]])
        records, skipped = transform_rows(ctx)
        assert [r["Id"] for r in records] == ["A1", "A2"]
        assert skipped == 3

    def test_order_is_preserved(self):
        ids = [f"B{i:03d}" for i in range(50, 0, -1)]
        ctx = _context([HEADER, *[[i] for i in ids]])
        records, _ = transform_rows(ctx)
        assert [r["Id"] for r in records] == ids

    def test_zero_booking_number_is_kept(self):
        """'0' is non-blank, so the row survives with an empty id."""
        ctx = _context([HEADER, ["0", "V1"]])
        records, skipped = transform_rows(ctx)
        assert skipped == 0
        assert records[0]["BookingNumber"] == ""


# ---------------------------------------------------------------------------
# parse_sheet
# ---------------------------------------------------------------------------

class TestParseSheet:
    """Orchestration and failure modes of parse_sheet()."""

    def test_result_fields(self):
        sheet = Sheet.from_values([HEADER, ["0012345", "V1"], ["", "x"], ["77"]])
        result = parse_sheet(sheet, file_name="arrivals.xlsx")
        assert result.file_name == "arrivals.xlsx"
        assert [r["Id"] for r in result.records] == ["012345", "77"]
        assert result.rows_total == 3
        assert result.rows_skipped == 1
        assert result.column_indices["BookingNumber"] == 0

    def test_to_frame(self):
        sheet = Sheet.from_values([HEADER, ["0012345", "V1", "J. Doe", 2, 1, 45000, 45005]])
        df = parse_sheet(sheet).to_frame()
        assert list(df.columns) == OUTPUT_COLUMNS
        assert df.loc[0, "DateTo"] == "20.03.2023"

    def test_missing_required_column(self):
        sheet = Sheet.from_values([["Voucher", "Main Guest"], ["V1", "Jane"]])
        with pytest.raises(MissingRequiredColumnError):
            parse_sheet(sheet)

    def test_all_rows_blank(self):
        sheet = Sheet.from_values([HEADER, ["", "V1"], [None, "V2"]])
        with pytest.raises(NoValidRowsError, match="Reservation Number"):
            parse_sheet(sheet)

    def test_header_only(self):
        with pytest.raises(NoValidRowsError):
            parse_sheet(Sheet.from_values([HEADER]))

    @pytest.mark.parametrize("grid", [[None, ["1"]], [["", None], ["1"]]])
    def test_missing_header(self, grid):
        with pytest.raises(MissingHeaderError):
            parse_sheet(Sheet.from_values(grid))

    def test_no_rows(self):
        with pytest.raises(EmptyWorkbookError, match="arrivals.xlsx"):
            parse_sheet(Sheet.from_values([]), file_name="arrivals.xlsx")

    def test_repeated_calls_do_not_share_state(self):
        first = Sheet.from_values([["Reservation Number", "Voucher"], ["1", "A"]])
        second = Sheet.from_values([["Voucher", "Reservation Num"], ["B", "2"]])
        r1 = parse_sheet(first)
        r2 = parse_sheet(second)
        r1_again = parse_sheet(first)
        assert r1.records == r1_again.records
        assert r1.records[0]["OTANumber"] == "A"
        assert r2.records[0]["OTANumber"] == "B"
        assert r2.column_indices["BookingNumber"] == 1

    def test_parallel_parses(self):
        """Independent sheets parsed from several threads give independent results."""
        sheets = {
            n: Sheet.from_values([HEADER, *[[f"{n}-{i}", f"V{n}"] for i in range(200)]])
            for n in range(8)
        }
        results: dict[int, list] = {}

        def work(n: int) -> None:
            results[n] = parse_sheet(sheets[n]).records

        threads = [threading.Thread(target=work, args=(n,)) for n in sheets]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for n, records in results.items():
            assert len(records) == 200
            assert {r["OTANumber"] for r in records} == {f"V{n}"}
