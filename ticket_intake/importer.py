"""
Bulk import orchestration for the Ticket Intake service.

An import call runs these steps in order:
1. Validate the uploaded file (present, non-empty, named, within size limit)
2. Determine the format (explicit, or detected from the file extension)
3. Parse the file into normalized records
4. Validate only, or create tickets in fixed-size batches
5. Aggregate per-row outcomes into a BatchReport

Row-level problems never abort an import; they become failed records in
the report. File-level problems raise before anything is created.
"""

import logging
import time
from typing import Optional, Protocol
from uuid import uuid4

from .config import ImportConfig
from .errors import (
    BulkImportError,
    ParseError,
    RecordValidationError,
    UnsupportedFormatError,
)
from .models import (
    BatchReport,
    FailedRecord,
    ImportedTicket,
    ImportRequest,
    NormalizedRecord,
    Ticket,
    UploadedFile,
)
from .parsers import ParsedRecord, ParseResult, ParserRegistry, RowError
from .parsers.base import snippet
from .validation import TicketValidator


logger = logging.getLogger(__name__)


FAILURE_SNIPPET_LENGTH = 50
IMPORT_SOURCE = "import"


class TicketCreator(Protocol):
    """The ticket-creation boundary an import hands records to."""

    def create_ticket(
        self,
        record: NormalizedRecord,
        import_batch: Optional[str] = None,
    ) -> Ticket: ...


class ReportAggregator:
    """
    Collects per-row outcomes of one import call.

    Outcomes may arrive in any order; the built report lists them by row
    number.
    """

    def __init__(self, import_batch: str, format_name: str, started_at: float):
        self._import_batch = import_batch
        self._format = format_name
        self._started_at = started_at
        self._successes: list[ImportedTicket] = []
        self._failures: list[FailedRecord] = []

    def add_success(
        self,
        row_number: int,
        subject: Optional[str],
        customer_id: Optional[str],
        ticket_id=None,
    ) -> None:
        self._successes.append(ImportedTicket(
            ticket_id=ticket_id,
            subject=subject,
            customer_id=customer_id,
            row_number=row_number,
        ))

    def add_failure(self, row_number: int, reason: str, raw_data_snippet: str = "") -> None:
        self._failures.append(FailedRecord(
            row_number=row_number,
            reason=reason,
            raw_data_snippet=raw_data_snippet,
        ))

    def add_row_errors(self, errors: list[RowError]) -> None:
        for error in errors:
            self.add_failure(error.row_number, error.reason, error.raw_data)

    def build(self) -> BatchReport:
        successes = sorted(self._successes, key=lambda item: item.row_number)
        failures = sorted(self._failures, key=lambda item: item.row_number)
        elapsed_ms = int((time.monotonic() - self._started_at) * 1000)

        return BatchReport(
            import_batch=self._import_batch,
            total_records=len(successes) + len(failures),
            success_count=len(successes),
            failure_count=len(failures),
            processing_time_ms=elapsed_ms,
            format=self._format,
            successful_tickets=successes,
            failed_records=failures,
        )


class ImportService:
    """
    Imports tickets from CSV, JSON or XML files.

    Records are created one at a time through the ticket-creation boundary,
    in batches of ``ImportConfig.batch_size``. A failed creation is recorded
    once and the next record proceeds; nothing is retried.
    """

    def __init__(
        self,
        ticket_service: TicketCreator,
        config: Optional[ImportConfig] = None,
        registry: Optional[ParserRegistry] = None,
        validator: Optional[TicketValidator] = None,
    ):
        self._ticket_service = ticket_service
        self._config = config or ImportConfig()
        self._registry = registry or ParserRegistry()
        self._validator = validator or TicketValidator()

        if self._config.batch_size <= 0:
            raise ValueError("batch_size must be a positive integer")

    def import_tickets(self, request: ImportRequest) -> BatchReport:
        """
        Run one bulk import.

        Args:
            request: The uploaded file and import options.

        Returns:
            BatchReport itemizing every record in the file.

        Raises:
            RecordValidationError: If the file or its format is unacceptable.
            UnsupportedFormatError: If an explicit format has no parser.
            BulkImportError: If the file cannot be parsed or holds no tickets.
        """
        started_at = time.monotonic()

        self._validate_file(request.file)
        format_name = self._determine_format(request.format, request.file.filename)
        import_batch = request.import_batch or str(uuid4())

        logger.info(
            f"Starting import - Format: {format_name}, Batch: {import_batch}, "
            f"File: {request.file.filename}"
        )

        result = self._parse(format_name, request.file)

        aggregator = ReportAggregator(import_batch, format_name, started_at)
        aggregator.add_row_errors(result.errors)

        if request.validate_only:
            self._validate_records(result.records, aggregator)
        else:
            self._process_batches(result.records, import_batch, aggregator)

        report = aggregator.build()
        logger.info(
            f"Import completed - Total: {report.total_records}, "
            f"Success: {report.success_count}, Failed: {report.failure_count}, "
            f"Status: {report.status.value}, Time: {report.processing_time_ms}ms"
        )
        return report

    def _validate_file(self, file: Optional[UploadedFile]) -> None:
        if file is None or file.is_empty():
            raise RecordValidationError("File is required", {"file": "File is required"})

        if file.size > self._config.max_file_size:
            limit_mb = self._config.max_file_size // (1024 * 1024)
            message = f"File size exceeds maximum allowed size of {limit_mb} MB"
            raise RecordValidationError(message, {"file": message})

        if not file.filename or not file.filename.strip():
            raise RecordValidationError(
                "File must have a name", {"file": "File must have a name"}
            )

    def _determine_format(self, provided: Optional[str], filename: str) -> str:
        if provided and provided.strip():
            return provided.strip().upper()

        try:
            return self._registry.detect_parser(filename).declared_format
        except UnsupportedFormatError as e:
            message = (
                "Cannot determine file format. "
                "Please specify format parameter (CSV, JSON, or XML)"
            )
            raise RecordValidationError(message, {"format": message}) from e

    def _parse(self, format_name: str, file: UploadedFile) -> ParseResult:
        parser = self._registry.get_parser(format_name)

        try:
            result = parser.parse(file.content)
        except ParseError as e:
            logger.error(f"Failed to parse file '{file.filename}': {e}")
            raise BulkImportError(
                f"Failed to parse file: {e}",
                failed_records=[error.reason for error in e.row_errors],
                total_records=e.total_records,
                success_count=0,
            ) from e
        except Exception as e:
            logger.error(f"Unexpected error parsing file '{file.filename}': {e}", exc_info=True)
            raise BulkImportError(f"Failed to parse file: {e}") from e

        if not result.records:
            raise BulkImportError(
                "No valid tickets found in the file",
                total_records=result.total_records,
            )
        return result

    def _validate_records(
        self,
        records: list[ParsedRecord],
        aggregator: ReportAggregator,
    ) -> None:
        for parsed in records:
            record = parsed.record
            try:
                self._validator.validate_import_record(record.to_import_record())
                aggregator.add_success(parsed.row_number, record.subject, record.customer_id)
            except RecordValidationError as e:
                aggregator.add_failure(
                    parsed.row_number,
                    str(e),
                    snippet(record.subject or "", FAILURE_SNIPPET_LENGTH),
                )

    def _process_batches(
        self,
        records: list[ParsedRecord],
        import_batch: str,
        aggregator: ReportAggregator,
    ) -> None:
        batch_size = self._config.batch_size
        total_batches = (len(records) + batch_size - 1) // batch_size
        logger.info(
            f"Processing {len(records)} tickets in {total_batches} batches of size {batch_size}"
        )

        for start in range(0, len(records), batch_size):
            batch = records[start:start + batch_size]
            batch_number = start // batch_size + 1
            logger.debug(
                f"Processing batch {batch_number}/{total_batches} with {len(batch)} tickets"
            )
            self._process_batch(batch, import_batch, aggregator)

    def _process_batch(
        self,
        batch: list[ParsedRecord],
        import_batch: str,
        aggregator: ReportAggregator,
    ) -> None:
        for parsed in batch:
            record = parsed.record
            if record.source is None:
                record = record.model_copy(update={"source": IMPORT_SOURCE})

            try:
                ticket = self._ticket_service.create_ticket(record, import_batch=import_batch)
            except Exception as e:
                logger.warning(
                    f"Failed to create ticket at row {parsed.row_number}: {e}"
                )
                aggregator.add_failure(
                    parsed.row_number,
                    str(e),
                    snippet(record.description or "", FAILURE_SNIPPET_LENGTH),
                )
                continue

            aggregator.add_success(
                parsed.row_number,
                ticket.subject,
                ticket.customer_id,
                ticket_id=ticket.id,
            )
