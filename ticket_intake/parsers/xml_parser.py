"""
XML parser for ticket imports.

Looks for repeated ``<ticket>`` (or ``<Ticket>``) elements anywhere in the
document, typically inside a ``<tickets>`` container. Field values come
from child element text, falling back to an attribute of the same name.
"""

import logging
from typing import Optional
from xml.etree import ElementTree

from ..errors import ParseError
from .base import (
    FileParser,
    ParsedRecord,
    ParseResult,
    RowError,
    build_record,
    normalize_key,
    snippet,
    split_tags,
)


logger = logging.getLogger(__name__)


TICKET_TAGS = ("ticket", "Ticket")


class _TicketElement:
    """Field lookup over one ``<ticket>`` element."""

    def __init__(self, element: ElementTree.Element):
        self._element = element
        self._children: dict[str, ElementTree.Element] = {}
        for child in element:
            self._children.setdefault(normalize_key(child.tag), child)
        self._attributes = {
            normalize_key(name): value for name, value in element.attrib.items()
        }

    def text(self, name: str) -> Optional[str]:
        key = normalize_key(name)
        child = self._children.get(key)
        if child is not None:
            value = "".join(child.itertext()).strip()
            if value:
                return value
        attribute = self._attributes.get(key)
        if attribute is not None:
            return attribute.strip()
        return "" if child is not None else None

    def tags(self) -> set[str]:
        container = self._children.get("tags")
        if container is None:
            return split_tags(self._attributes.get("tags"))

        nested = [tag for tag in container if normalize_key(tag.tag) == "tag"]
        if nested:
            return {
                "".join(tag.itertext()).strip()
                for tag in nested
                if "".join(tag.itertext()).strip()
            }
        return split_tags("".join(container.itertext()))


class XmlParser(FileParser):
    """Parser for markup ticket files."""

    format_name = "XML"

    def _parse_content(self, content: bytes) -> ParseResult:
        try:
            root = ElementTree.fromstring(content)
        except ElementTree.ParseError as e:
            raise ParseError(f"Failed to parse XML file: {e}") from e

        elements = self._find_ticket_elements(root)
        if not elements:
            raise ParseError("No ticket elements found in XML file")

        result = ParseResult()
        for position, element in enumerate(elements, 1):
            try:
                ticket = _TicketElement(element)
                record = build_record(ticket.text, tags=ticket.tags())
                result.records.append(ParsedRecord(position, record))
            except ValueError as e:
                logger.warning(
                    f"Failed to parse XML ticket at position {position}: {e}"
                )
                result.errors.append(RowError(
                    row_number=position,
                    reason=f"Ticket {position}: {e}",
                    raw_data=snippet(ElementTree.tostring(element, encoding="unicode")),
                ))

        return result

    @staticmethod
    def _find_ticket_elements(root: ElementTree.Element) -> list[ElementTree.Element]:
        for tag in TICKET_TAGS:
            elements = list(root.iter(tag))
            if elements:
                return elements
        return []
