"""Export service: flatten a category forest into (Category, Parent Category) rows."""

import csv
import io
import logging

from openpyxl import Workbook
from openpyxl.styles import Font

from cattree.db.connection import Database
from cattree.models import ROOT_SENTINEL, SHEET_TITLE, TABLE_HEADERS, TableRow
from cattree.trees.store import CategoryStore

logger = logging.getLogger(__name__)


class ExportService:
    """Builds export artifacts from materialized state."""

    def __init__(self, db: Database, store: CategoryStore | None = None) -> None:
        self._db = db
        self._store = store or CategoryStore(db)

    async def export_rows(self, owner: str) -> list[TableRow]:
        """One row per category, in the same pre-order as the rendered outline.

        Roots come in insertion order and each subtree is emitted in full
        before the next sibling, so a parent row always precedes its children.
        """
        rows: list[TableRow] = []
        async with self._db.owner_lock(owner):
            # Explicit stack so depth is not bounded by the recursion limit
            stack = [(root, ROOT_SENTINEL) for root in reversed(await self._store.find_roots(owner))]
            while stack:
                node, parent_name = stack.pop()
                rows.append(TableRow(name=node.name, parent=parent_name))
                children = await self._store.find_children(node)
                stack.extend((child, node.name) for child in reversed(children))
        logger.info("Exported %d categories for owner %s", len(rows), owner)
        return rows

    async def export_csv(self, owner: str) -> str:
        """Export the forest as CSV with a Category / Parent Category header."""
        rows = await self.export_rows(owner)

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(TABLE_HEADERS)
        for row in rows:
            writer.writerow([row.name, row.parent])
        return output.getvalue()

    async def export_xlsx(self, owner: str) -> bytes:
        """Export the forest as a workbook with one "Category Tree" sheet.

        The header row is bold; the columns match the CSV export.
        """
        rows = await self.export_rows(owner)

        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_TITLE
        ws.append(list(TABLE_HEADERS))
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in rows:
            ws.append([row.name, row.parent])

        bio = io.BytesIO()
        wb.save(bio)
        return bio.getvalue()
