"""
Registry mapping format names and file extensions to parsers.
"""

import logging
from typing import Optional

from ..errors import UnsupportedFormatError
from .base import FileParser
from .csv_parser import CsvParser
from .json_parser import JsonParser
from .xml_parser import XmlParser


logger = logging.getLogger(__name__)


EXTENSION_FORMATS = {
    "csv": "CSV",
    "json": "JSON",
    "xml": "XML",
}


def get_file_extension(filename: str) -> str:
    """
    Return the text after the last dot, or "" when there is none.

    A leading dot (".csv") or a trailing dot ("tickets.") yields no
    extension.
    """
    last_dot = filename.rfind(".")
    if 0 < last_dot < len(filename) - 1:
        return filename[last_dot + 1:]
    return ""


class ParserRegistry:
    """
    Lookup of file parsers by format name.

    Built once with the CSV, JSON and XML parsers unless a custom parser
    list is supplied.
    """

    def __init__(self, parsers: Optional[list[FileParser]] = None):
        if parsers is None:
            parsers = [CsvParser(), JsonParser(), XmlParser()]
        self._parsers = {parser.declared_format.upper(): parser for parser in parsers}

    @property
    def supported_formats(self) -> list[str]:
        return list(self._parsers)

    def get_parser(self, format_name: Optional[str]) -> FileParser:
        """
        Get the parser for a format name (case-insensitive).

        Raises:
            UnsupportedFormatError: If no parser handles the format.
        """
        supported = ", ".join(self._parsers)
        if not format_name or not format_name.strip():
            raise UnsupportedFormatError(
                f"File format not specified. Supported formats: {supported}",
                supported=self.supported_formats,
            )

        parser = self._parsers.get(format_name.strip().upper())
        if parser is None:
            raise UnsupportedFormatError(
                f"Unsupported file format: {format_name}. Supported formats: {supported}",
                supported=self.supported_formats,
            )
        return parser

    def detect_parser(self, filename: Optional[str]) -> FileParser:
        """
        Pick a parser from a filename's extension.

        Raises:
            UnsupportedFormatError: If the extension is missing or unknown.
        """
        if not filename:
            raise UnsupportedFormatError(
                "Filename is required for format detection",
                supported=self.supported_formats,
            )

        extension = get_file_extension(filename).lower()
        format_name = EXTENSION_FORMATS.get(extension)
        if format_name is None or format_name not in self._parsers:
            raise UnsupportedFormatError(
                f"Cannot detect format from filename: {filename}. "
                f"Supported extensions: .csv, .json, .xml",
                supported=self.supported_formats,
            )

        logger.debug(f"Detected format {format_name} for '{filename}'")
        return self._parsers[format_name]
