"""File format parsers turning import files into normalized ticket records."""

from .base import FileParser, ParsedRecord, ParseResult, RowError
from .csv_parser import CsvParser
from .json_parser import JsonParser
from .registry import ParserRegistry, get_file_extension
from .xml_parser import XmlParser

__all__ = [
    "CsvParser",
    "FileParser",
    "JsonParser",
    "ParsedRecord",
    "ParseResult",
    "ParserRegistry",
    "RowError",
    "XmlParser",
    "get_file_extension",
]
