"""
Transforms sub-package for booking-ingest.

Field-level rules applied to worksheet cells, one concern per module:
  - values.py: cell-to-text rendering, integer parsing, leading-zero stripping.
  - dates.py: spreadsheet date serials / display text -> DD.MM.YYYY.
  - records.py: row filter and record builder for the fixed output schema.

The rules are plain functions of their inputs; the only per-workbook
state (sheet + resolved column indices) is passed in explicitly as a
``ParseContext``.
"""
