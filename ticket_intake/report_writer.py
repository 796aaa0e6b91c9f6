"""
Batch report export for the Ticket Intake service.

Writes a BatchReport either as camelCase JSON or as a formatted Excel
workbook with:
- a summary sheet
- one row per imported ticket
- one row per failed record
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .errors import TicketIntakeError
from .models import BatchReport


logger = logging.getLogger(__name__)


class ReportWriterError(TicketIntakeError):
    """Error while writing a report file."""
    pass


SUMMARY_COLUMNS = [
    {"header": "Field", "width": 22},
    {"header": "Value", "width": 40},
]

IMPORTED_COLUMNS = [
    {"key": "row_number", "header": "Row", "width": 8},
    {"key": "ticket_id", "header": "Ticket ID", "width": 40},
    {"key": "customer_id", "header": "Customer ID", "width": 16},
    {"key": "subject", "header": "Subject", "width": 50},
]

FAILED_COLUMNS = [
    {"key": "row_number", "header": "Row", "width": 8},
    {"key": "reason", "header": "Reason", "width": 60},
    {"key": "raw_data_snippet", "header": "Data", "width": 60},
]


def summary_rows(report: BatchReport) -> list[list[Any]]:
    """Key facts of a report as (label, value) rows."""
    return [
        ["Import Batch", report.import_batch],
        ["Imported At", report.imported_at.isoformat(timespec="seconds")],
        ["Format", report.format],
        ["Status", report.status.value],
        ["Total Records", report.total_records],
        ["Succeeded", report.success_count],
        ["Failed", report.failure_count],
        ["Processing Time (ms)", report.processing_time_ms],
    ]


class ExcelReportWriter:
    """
    Writer for formatted Excel import reports.

    Produces:
    - Styled headers (bold, colored background)
    - Fixed column widths with text wrapping
    - Frozen header rows
    """

    # Style configuration
    HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
    HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
    HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center", wrap_text=True)

    CELL_ALIGNMENT = Alignment(vertical="top", wrap_text=True)
    CELL_BORDER = Border(
        left=Side(style="thin", color="D0D0D0"),
        right=Side(style="thin", color="D0D0D0"),
        top=Side(style="thin", color="D0D0D0"),
        bottom=Side(style="thin", color="D0D0D0"),
    )

    FAILED_ROW_FILL = PatternFill(start_color="FCE4E4", end_color="FCE4E4", fill_type="solid")

    def write(self, report: BatchReport, path: Path) -> Path:
        """
        Write the report workbook.

        Raises:
            ReportWriterError: If the workbook cannot be written.
        """
        try:
            wb = Workbook()

            summary = wb.active
            summary.title = "Summary"
            self._write_sheet(summary, SUMMARY_COLUMNS, summary_rows(report))

            imported = wb.create_sheet("Imported Tickets")
            self._write_sheet(
                imported,
                IMPORTED_COLUMNS,
                [self._row(item.model_dump(mode="json"), IMPORTED_COLUMNS)
                 for item in report.successful_tickets],
            )

            failed = wb.create_sheet("Failed Records")
            self._write_sheet(
                failed,
                FAILED_COLUMNS,
                [self._row(item.model_dump(mode="json"), FAILED_COLUMNS)
                 for item in report.failed_records],
                fill=self.FAILED_ROW_FILL,
            )

            path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(path)

            logger.info(f"Excel report saved to: {path}")
            return path

        except Exception as e:
            logger.error(f"Failed to write Excel report: {e}")
            raise ReportWriterError(f"Report generation failed: {e}") from e

    @staticmethod
    def _row(values: dict[str, Any], columns: list[dict]) -> list[Any]:
        return [values.get(column["key"]) for column in columns]

    def _write_sheet(
        self,
        ws: Worksheet,
        columns: list[dict],
        rows: list[list[Any]],
        fill: Optional[PatternFill] = None,
    ) -> None:
        for col_idx, column in enumerate(columns, 1):
            cell = ws.cell(row=1, column=col_idx, value=column["header"])
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = self.HEADER_ALIGNMENT
            cell.border = self.CELL_BORDER
            ws.column_dimensions[get_column_letter(col_idx)].width = column["width"]

        for row_idx, values in enumerate(rows, 2):
            for col_idx, value in enumerate(values, 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.alignment = self.CELL_ALIGNMENT
                cell.border = self.CELL_BORDER
                if fill is not None:
                    cell.fill = fill

        ws.freeze_panes = "A2"


def write_json_report(report: BatchReport, path: Path) -> Path:
    """Write the report as pretty-printed camelCase JSON."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to write JSON report: {e}")
        raise ReportWriterError(f"Report generation failed: {e}") from e

    logger.info(f"JSON report saved to: {path}")
    return path


def write_report(report: BatchReport, path: Path) -> Path:
    """
    Write a report, choosing the format from the file extension.

    Args:
        report: The batch report to export.
        path: Destination ending in .json or .xlsx.

    Returns:
        Path to the written file.
    """
    suffix = path.suffix.lower()
    if suffix == ".json":
        return write_json_report(report, path)
    if suffix == ".xlsx":
        return ExcelReportWriter().write(report, path)
    raise ReportWriterError(
        f"Unsupported report format '{suffix or path.name}'. Use .json or .xlsx"
    )
