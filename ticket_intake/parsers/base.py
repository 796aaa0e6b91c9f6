"""
Shared parser contract and record-building helpers.

Every file format parser turns raw bytes into a ``ParseResult``: the records
that could be extracted plus the row-level errors for records that could
not. Only container-level problems raise ``ParseError``.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Optional, Union

from ..errors import ParseError
from ..models import Category, NormalizedRecord, Priority, Status


logger = logging.getLogger(__name__)


REQUIRED_FIELDS = (
    "customer_id",
    "customer_email",
    "customer_name",
    "subject",
    "description",
)

OPTIONAL_TEXT_FIELDS = ("assigned_to", "source", "browser", "device_type")

ENUM_FIELDS = {
    "category": Category,
    "priority": Priority,
    "status": Status,
}

SNIPPET_LENGTH = 100

_KEY_SEPARATORS = re.compile(r"[\s_\-]+")


@dataclass(frozen=True)
class RowError:
    """A single record that was skipped during parsing."""

    row_number: int
    reason: str
    raw_data: str = ""


@dataclass(frozen=True)
class ParsedRecord:
    """A normalized record together with its 1-based position in the file."""

    row_number: int
    record: NormalizedRecord


@dataclass
class ParseResult:
    """Records extracted from one file, plus the rows that were skipped."""

    records: list[ParsedRecord] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def total_records(self) -> int:
        return len(self.records) + len(self.errors)

    def normalized_records(self) -> list[NormalizedRecord]:
        return [parsed.record for parsed in self.records]


def normalize_key(name: str) -> str:
    """
    Reduce a column, key or tag name to a comparison key.

    "Customer ID", "customer_id", "customer-id" and "customerId" all
    reduce to "customerid".
    """
    return _KEY_SEPARATORS.sub("", str(name)).lower()


def split_tags(text: Optional[str]) -> set[str]:
    """Split a comma-separated tag list into a set of trimmed tags."""
    if not text:
        return set()
    return {tag.strip() for tag in text.split(",") if tag.strip()}


def snippet(text: str, limit: int = SNIPPET_LENGTH) -> str:
    """Shorten raw input for inclusion in error reports."""
    text = " ".join(str(text).split())
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


def build_record(
    lookup: Callable[[str], Optional[str]],
    tags: Optional[set[str]] = None,
) -> NormalizedRecord:
    """
    Assemble a NormalizedRecord from a field lookup function.

    Args:
        lookup: Returns the raw text for a snake_case field name, or None
            when the field is absent from the source record.
        tags: Tags already extracted by the format-specific parser.

    Returns:
        The normalized record.

    Raises:
        ValueError: If a required field is missing or blank.
    """
    values: dict = {}

    for name in REQUIRED_FIELDS:
        value = lookup(name)
        if value is None or not value.strip():
            raise ValueError(f"Missing required field: {name}")
        values[name] = value.strip()

    for name, enum_type in ENUM_FIELDS.items():
        raw = lookup(name)
        if raw is None or not raw.strip():
            continue
        member = enum_type.parse(raw)
        if member is None:
            logger.debug(f"Invalid {name} value: '{raw}', treating as absent")
            continue
        values[name] = member

    for name in OPTIONAL_TEXT_FIELDS:
        value = lookup(name)
        if value is not None and value.strip():
            values[name] = value.strip()

    values["tags"] = set(tags or ())
    return NormalizedRecord(**values)


def decode_text(content: bytes, format_name: str) -> str:
    """Decode UTF-8 input (with or without BOM) for the text-based formats."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"{format_name} file is not valid UTF-8: {e}") from e


class FileParser(ABC):
    """
    Base class for the file format parsers.

    Subclasses declare ``format_name`` and implement ``_parse_content``.
    """

    format_name: str = ""

    @property
    def declared_format(self) -> str:
        return self.format_name

    def parse(self, source: Union[bytes, BinaryIO]) -> ParseResult:
        """
        Parse a file into normalized records.

        Args:
            source: Raw file bytes or a readable binary stream.

        Returns:
            ParseResult with the extracted records and skipped rows.

        Raises:
            ParseError: If the input is unreadable, structurally invalid, or
                every record in it failed.
        """
        if isinstance(source, (bytes, bytearray)):
            content = bytes(source)
        else:
            try:
                content = source.read()
            except OSError as e:
                raise ParseError(f"Failed to read {self.format_name} input: {e}") from e

        result = self._parse_content(content)

        if result.errors and not result.records:
            logger.error(
                f"All {len(result.errors)} {self.format_name} records failed to parse"
            )
            raise ParseError(
                "All records failed validation",
                row_errors=result.errors,
                total_records=result.total_records,
            )

        if result.errors:
            logger.warning(
                f"Skipped {len(result.errors)} malformed {self.format_name} records"
            )
        logger.info(
            f"Successfully parsed {len(result.records)} tickets from {self.format_name}"
        )
        return result

    @abstractmethod
    def _parse_content(self, content: bytes) -> ParseResult:
        """Extract records from raw bytes; raise ParseError for container problems."""
