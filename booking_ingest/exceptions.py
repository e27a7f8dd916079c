"""
Custom exception hierarchy for booking-ingest.

Callers (the conversion script, or a UI wrapping the library) catch
``BookingIngestError`` to show a single message to the user, or one of
the specific subclasses to react differently, e.g. asking for another
file on ``UnsupportedFileTypeError``.

Every message is written for end users: it says what was wrong with the
uploaded workbook and, where useful, what was found instead.
"""

from __future__ import annotations


class BookingIngestError(Exception):
    """Base exception for all booking-ingest errors."""


class FileReadError(BookingIngestError):
    """Raised when the workbook bytes cannot be read or opened."""


class UnsupportedFileTypeError(BookingIngestError):
    """Raised when a file is rejected by extension / media type."""


class EmptyWorkbookError(BookingIngestError):
    """Raised when the workbook has no sheets or its first sheet has no rows."""


class MissingHeaderError(BookingIngestError):
    """Raised when the first row of the sheet is not a usable header row."""


class MissingRequiredColumnError(BookingIngestError):
    """Raised when none of the required field's aliases is in the header.

    Attributes:
        field: Canonical name of the required field (e.g. ``BookingNumber``).
        accepted_aliases: Header labels that would have been accepted.
        headers_found: Non-blank header labels actually present.
    """

    def __init__(
        self,
        field: str,
        accepted_aliases: list[str],
        headers_found: list[str],
    ) -> None:
        self.field = field
        self.accepted_aliases = list(accepted_aliases)
        self.headers_found = list(headers_found)
        names = '" or "'.join(self.accepted_aliases)
        super().__init__(
            f'The required column "{names}" was not found. '
            f"Available columns: {', '.join(self.headers_found)}"
        )


class NoValidRowsError(BookingIngestError):
    """Raised when every data row was discarded by the row filter."""

    def __init__(self, field: str, accepted_aliases: list[str]) -> None:
        self.field = field
        self.accepted_aliases = list(accepted_aliases)
        names = '" or "'.join(self.accepted_aliases)
        super().__init__(
            f'No valid rows found. Make sure the column "{names}" '
            "contains values."
        )


class ConfigValidationError(BookingIngestError):
    """Raised when a config YAML file is empty or internally inconsistent."""


class ExportError(BookingIngestError):
    """Raised when the export cannot be rendered or written.

    For example, permission errors or a missing output drive.
    """


class EmptyExportError(ExportError):
    """Raised when the serializer is called without any records."""
