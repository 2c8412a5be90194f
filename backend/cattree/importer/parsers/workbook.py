"""Excel workbook codec for the category exchange table."""

import io
import zipfile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from cattree.importer.parsers.table import MalformedTableError
from cattree.models import SHEET_TITLE, TABLE_HEADERS, TableRow


def parse_workbook(content: bytes) -> list[TableRow]:
    """Read the "Category Tree" sheet of an .xlsx workbook.

    The first row is the header. Rows missing either cell are skipped, and
    numeric cells are read as their text.
    """
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise MalformedTableError(f"Invalid workbook: {e}") from e

    try:
        if SHEET_TITLE not in workbook.sheetnames:
            raise MalformedTableError(f"Sheet '{SHEET_TITLE}' not found in workbook")
        records = list(workbook[SHEET_TITLE].iter_rows(values_only=True))
    finally:
        workbook.close()

    if not records:
        raise MalformedTableError("Empty sheet — nothing to import")

    header = tuple(_text(cell) for cell in records[0][:2])
    if header != TABLE_HEADERS:
        raise MalformedTableError(
            f"Expected header {', '.join(TABLE_HEADERS)!s}, got {', '.join(header) or 'nothing'}"
        )

    rows: list[TableRow] = []
    for record in records[1:]:
        if len(record) < 2:
            continue
        name, parent = _text(record[0]), _text(record[1])
        if not name or not parent:
            continue
        rows.append(TableRow(name=name, parent=parent))
    return rows


def _text(cell: object) -> str:
    if cell is None:
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell).strip()
