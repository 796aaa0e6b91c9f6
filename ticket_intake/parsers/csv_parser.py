"""
CSV parser for ticket imports.

The first row is the header. Header names are matched case-insensitively
and tolerate spaces, underscores, hyphens or no separator between words.
"""

import csv
import io
import logging
from typing import Optional

from ..errors import ParseError
from .base import (
    REQUIRED_FIELDS,
    FileParser,
    ParsedRecord,
    ParseResult,
    RowError,
    build_record,
    decode_text,
    normalize_key,
    snippet,
    split_tags,
)


logger = logging.getLogger(__name__)


class CsvParser(FileParser):
    """
    Parser for delimited-text ticket files.

    A missing required header rejects the whole file. A missing required
    cell, or a row the csv module cannot read (such as an oversized field),
    only skips that row. Rows are numbered from 1 after the header;
    error messages quote the file line, which is the row number plus one.
    """

    format_name = "CSV"

    def _parse_content(self, content: bytes) -> ParseResult:
        text = decode_text(content, self.format_name)
        reader = csv.reader(io.StringIO(text, newline=""))
        result = ParseResult()

        try:
            header = next(reader, None)
        except csv.Error as e:
            raise ParseError(f"Failed to parse CSV header: {e}") from e

        if header is None or not any(cell.strip() for cell in header):
            raise ParseError("CSV file is empty or has no header row")

        columns = self._map_columns(header)
        self._validate_headers(columns)

        row_number = 0
        while True:
            # The reader resumes on the next line after a malformed row
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                row_number += 1
                self._add_error(result, row_number, str(e), "")
                continue

            if not any(cell.strip() for cell in row):
                continue
            row_number += 1
            try:
                record = build_record(
                    lambda name, row=row: self._cell(row, columns, name),
                    tags=split_tags(self._cell(row, columns, "tags")),
                )
                result.records.append(ParsedRecord(row_number, record))
            except ValueError as e:
                self._add_error(result, row_number, str(e), ",".join(row))

        return result

    @staticmethod
    def _add_error(result: ParseResult, row_number: int, message: str, raw: str) -> None:
        logger.warning(f"Failed to parse CSV record at row {row_number + 1}: {message}")
        result.errors.append(RowError(
            row_number=row_number,
            reason=f"Row {row_number + 1}: {message}",
            raw_data=snippet(raw),
        ))

    @staticmethod
    def _map_columns(header: list[str]) -> dict[str, int]:
        """Map normalized header names to column indexes (first occurrence wins)."""
        columns: dict[str, int] = {}
        for index, name in enumerate(header):
            columns.setdefault(normalize_key(name), index)
        return columns

    @staticmethod
    def _validate_headers(columns: dict[str, int]) -> None:
        missing = [name for name in REQUIRED_FIELDS if normalize_key(name) not in columns]
        if missing:
            raise ParseError(f"Missing required headers: {', '.join(missing)}")

    @staticmethod
    def _cell(row: list[str], columns: dict[str, int], name: str) -> Optional[str]:
        index = columns.get(normalize_key(name))
        if index is None or index >= len(row):
            return None
        return row[index].strip()
