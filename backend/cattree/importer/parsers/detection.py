"""Pick the table codec for an uploaded file from its name."""

from collections.abc import Callable

from cattree.importer.parsers.table import MalformedTableError, parse_table
from cattree.importer.parsers.workbook import parse_workbook
from cattree.models import TableRow

PARSERS: dict[str, Callable[[bytes], list[TableRow]]] = {
    ".xlsx": parse_workbook,
    ".csv": parse_table,
}

SUPPORTED_EXTENSIONS = tuple(PARSERS)


def detect_format(filename: str) -> str:
    """Return the extension whose codec reads ``filename``.

    Raises MalformedTableError for any other file type.
    """
    lowered = filename.lower()
    for extension in PARSERS:
        if lowered.endswith(extension):
            return extension
    raise MalformedTableError(f"Unsupported file type: {filename or 'unnamed'}")


def parse_upload(filename: str, content: bytes) -> list[TableRow]:
    return PARSERS[detect_format(filename)](content)
