"""Tests for batch report export."""

import json
from uuid import uuid4

import pytest
from openpyxl import load_workbook

from ticket_intake.models import BatchReport, FailedRecord, ImportedTicket
from ticket_intake.report_writer import (
    ExcelReportWriter,
    ReportWriterError,
    summary_rows,
    write_report,
)


@pytest.fixture
def report() -> BatchReport:
    return BatchReport(
        import_batch="batch-7",
        total_records=3,
        success_count=2,
        failure_count=1,
        processing_time_ms=12,
        format="CSV",
        successful_tickets=[
            ImportedTicket(ticket_id=uuid4(), row_number=1, subject="First", customer_id="C1"),
            ImportedTicket(ticket_id=uuid4(), row_number=3, subject="Third", customer_id="C3"),
        ],
        failed_records=[
            FailedRecord(
                row_number=2,
                reason="Row 3: Missing required field: customer_email",
                raw_data_snippet="C2,,User 2",
            ),
        ],
    )


class TestSummaryRows:
    """Tests for summary_rows."""

    def test_contains_counts_and_status(self, report):
        rows = dict(summary_rows(report))

        assert rows["Import Batch"] == "batch-7"
        assert rows["Status"] == "PARTIAL_SUCCESS"
        assert rows["Total Records"] == 3
        assert rows["Failed"] == 1


class TestExcelReportWriter:
    """Tests for ExcelReportWriter."""

    def test_creates_sheets(self, report, tmp_path):
        """Test workbook has one sheet per section."""
        path = ExcelReportWriter().write(report, tmp_path / "out" / "report.xlsx")

        assert path.exists()
        wb = load_workbook(path)
        assert wb.sheetnames == ["Summary", "Imported Tickets", "Failed Records"]

    def test_sheet_contents(self, report, tmp_path):
        path = ExcelReportWriter().write(report, tmp_path / "report.xlsx")

        wb = load_workbook(path)
        imported = wb["Imported Tickets"]
        failed = wb["Failed Records"]

        assert [cell.value for cell in imported[1]] == ["Row", "Ticket ID", "Customer ID", "Subject"]
        assert imported.max_row == 3
        assert imported.cell(row=3, column=4).value == "Third"
        assert failed.cell(row=2, column=1).value == 2
        assert failed.cell(row=2, column=3).value == "C2,,User 2"
        assert imported.freeze_panes == "A2"

    def test_header_styling(self, report, tmp_path):
        path = ExcelReportWriter().write(report, tmp_path / "report.xlsx")

        header = load_workbook(path)["Summary"].cell(row=1, column=1)
        assert header.font.bold is True


class TestWriteReport:
    """Tests for write_report dispatch."""

    def test_json(self, report, tmp_path):
        path = write_report(report, tmp_path / "report.json")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["importBatch"] == "batch-7"
        assert data["status"] == "PARTIAL_SUCCESS"
        assert data["failedRecords"][0]["rowNumber"] == 2

    def test_xlsx(self, report, tmp_path):
        path = write_report(report, tmp_path / "report.XLSX")
        assert path.exists()

    def test_unsupported_extension(self, report, tmp_path):
        with pytest.raises(ReportWriterError, match="Unsupported report format"):
            write_report(report, tmp_path / "report.csv")
