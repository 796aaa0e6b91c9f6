"""
JSON parser for ticket imports.

Accepts either a top-level array of ticket objects or an object holding
the array under a ``tickets`` property. Keys may be snake_case or
camelCase.
"""

import json
import logging
from typing import Any, Optional

from ..errors import ParseError
from .base import (
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


COLLECTION_KEY = "tickets"


def _as_text(value: Any) -> Optional[str]:
    """Render a scalar JSON value as text; null and containers count as absent."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _extract_tags(value: Any) -> set[str]:
    if isinstance(value, list):
        return {str(tag).strip() for tag in value if tag is not None and str(tag).strip()}
    if isinstance(value, str):
        return split_tags(value)
    return set()


class JsonParser(FileParser):
    """Parser for structured-object ticket files."""

    format_name = "JSON"

    def _parse_content(self, content: bytes) -> ParseResult:
        text = decode_text(content, self.format_name)

        try:
            root = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Failed to parse JSON file: {e}") from e

        nodes = self._find_ticket_nodes(root)
        result = ParseResult()

        for record_number, node in enumerate(nodes, 1):
            try:
                if not isinstance(node, dict):
                    raise ValueError("Expected a ticket object")
                fields = self._normalize_keys(node)
                record = build_record(
                    lambda name, fields=fields: _as_text(fields.get(normalize_key(name))),
                    tags=_extract_tags(fields.get("tags")),
                )
                result.records.append(ParsedRecord(record_number, record))
            except ValueError as e:
                logger.warning(
                    f"Failed to parse JSON record at position {record_number}: {e}"
                )
                result.errors.append(RowError(
                    row_number=record_number,
                    reason=f"Record {record_number}: {e}",
                    raw_data=snippet(json.dumps(node, default=str)),
                ))

        return result

    @staticmethod
    def _find_ticket_nodes(root: Any) -> list:
        if isinstance(root, list):
            return root
        if isinstance(root, dict) and isinstance(root.get(COLLECTION_KEY), list):
            return root[COLLECTION_KEY]
        raise ParseError(
            f"Invalid JSON format. Expected array or object with '{COLLECTION_KEY}' array"
        )

    @staticmethod
    def _normalize_keys(node: dict) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, value in node.items():
            fields.setdefault(normalize_key(key), value)
        return fields
