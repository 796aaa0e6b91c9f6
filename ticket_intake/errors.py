"""
Exception hierarchy for the Ticket Intake service.

Row-level problems are never raised; they travel as ``RowError`` data
inside a ``ParseResult`` or as failed records in a ``BatchReport``.
"""

from typing import Optional


class TicketIntakeError(Exception):
    """Base exception for ticket intake errors."""
    pass


class RecordValidationError(TicketIntakeError):
    """
    One or more field-level or precondition violations.

    Attributes:
        errors: Mapping of field name to violation message.
    """

    def __init__(self, message: str, errors: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = dict(errors or {})

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        details = "; ".join(f"{name}: {msg}" for name, msg in self.errors.items())
        return f"{self.message} ({details})"


class UnsupportedFormatError(TicketIntakeError):
    """The requested or detected file format has no parser."""

    def __init__(self, message: str, supported: Optional[list[str]] = None):
        super().__init__(message)
        self.supported = list(supported or [])


class ParseError(TicketIntakeError):
    """
    Container-level parse failure; the whole file is rejected.

    Attributes:
        row_errors: Row-level errors collected before giving up (set when
            every record in the file failed).
        total_records: Number of records seen in the file.
    """

    def __init__(
        self,
        message: str,
        row_errors: Optional[list] = None,
        total_records: int = 0,
    ):
        super().__init__(message)
        self.row_errors = list(row_errors or [])
        self.total_records = total_records


class BulkImportError(TicketIntakeError):
    """
    An import that produced no usable records.

    Carries aggregate counts so callers can report what was attempted.
    """

    def __init__(
        self,
        message: str,
        failed_records: Optional[list[str]] = None,
        total_records: int = 0,
        success_count: int = 0,
    ):
        super().__init__(message)
        self.failed_records = list(failed_records or [])
        self.total_records = total_records
        self.success_count = success_count

    @property
    def failure_count(self) -> int:
        return self.total_records - self.success_count


class TicketNotFoundError(TicketIntakeError):
    """No ticket exists with the requested identifier."""

    def __init__(self, ticket_id):
        super().__init__(f"Ticket with id '{ticket_id}' not found")
        self.ticket_id = ticket_id


class SourceError(TicketIntakeError):
    """Error when reading an import file from disk or a URL."""
    pass
