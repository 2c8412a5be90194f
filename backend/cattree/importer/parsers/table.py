"""CSV codec for the two-column category exchange table."""

import csv
import io

from cattree.models import TABLE_HEADERS, TableRow


class MalformedTableError(Exception):
    """Raised when uploaded content is not a readable category table."""


def parse_table(content: bytes) -> list[TableRow]:
    """Decode CSV bytes into ordered (Category, Parent Category) rows.

    The first row must be the header. Rows with a missing or empty cell in
    either column are skipped; extra columns are ignored.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedTableError(f"Invalid UTF-8: {e}") from e

    try:
        records = list(csv.reader(io.StringIO(text)))
    except csv.Error as e:
        raise MalformedTableError(f"Invalid CSV: {e}") from e

    if not records:
        raise MalformedTableError("Empty file — nothing to import")

    header = tuple(cell.strip() for cell in records[0][:2])
    if header != TABLE_HEADERS:
        raise MalformedTableError(
            f"Expected header {', '.join(TABLE_HEADERS)!s}, got {', '.join(header) or 'nothing'}"
        )

    rows: list[TableRow] = []
    for record in records[1:]:
        if len(record) < 2 or not record[0] or not record[1]:
            continue
        rows.append(TableRow(name=record[0], parent=record[1]))
    return rows
