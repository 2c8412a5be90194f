"""ImportService: applies (Category, Parent Category) rows to an owner's forest."""

import logging
from collections.abc import Iterable

from cattree.db.connection import Database
from cattree.importer.parsers.detection import parse_upload
from cattree.models import CategoryNode, TableRow, TreeResult
from cattree.responses import reply
from cattree.trees.store import CategoryStore

logger = logging.getLogger(__name__)


class ImportService:
    def __init__(self, db: Database, store: CategoryStore | None = None) -> None:
        self._db = db
        self._store = store or CategoryStore(db)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def import_file(self, filename: str, content: bytes, owner: str) -> TreeResult:
        """Import an uploaded .xlsx workbook or .csv table, chosen by file name.

        Raises MalformedTableError for other file types or unreadable content.
        """
        rows = parse_upload(filename, content)
        return await self.import_rows(rows, owner)

    async def import_rows(self, rows: Iterable[TableRow], owner: str) -> TreeResult:
        """Apply table rows in order, as one transaction.

        A parent may be referenced before its own row appears: the first
        reference creates it as a placeholder root, and its later row can
        still hang it under a parent of its own.
        """
        entries = self._collapse(rows)

        async with self._db.owner_lock(owner), self._db.transaction():
            for name, parent_name in entries.items():
                await self._apply_row(TableRow(name=name, parent=parent_name), owner)

        logger.info("Imported %d categories for owner %s", len(entries), owner)
        return TreeResult.success(
            reply("tree", "imported", count=len(entries)), count=len(entries)
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _collapse(rows: Iterable[TableRow]) -> dict[str, str]:
        """One entry per subject: first-seen position, last parent given."""
        entries: dict[str, str] = {}
        for row in rows:
            entries[row.name] = row.parent
        return entries

    async def _apply_row(self, row: TableRow, owner: str) -> None:
        subject = await self._store.find_by_name_and_owner(row.name, owner)

        if subject is None:
            subject = await self._store.save(CategoryNode(owner=owner, name=row.name))
            if row.is_root:
                return
            parent = await self._find_or_create_root(row.parent, owner)
            if parent.node_id == subject.node_id:
                logger.warning("Row lists %r as its own parent, kept as a root", row.name)
                return
            await self._store.save(subject.model_copy(update={"parent_id": parent.node_id}))
            return

        if row.is_root:
            return

        # An existing subject is only relinked when its parent is new. When both
        # already exist the row is left alone, even if it names a different parent.
        if await self._store.exists(row.parent, owner):
            return
        parent = await self._store.save(CategoryNode(owner=owner, name=row.parent))
        await self._store.save(subject.model_copy(update={"parent_id": parent.node_id}))

    async def _find_or_create_root(self, name: str, owner: str) -> CategoryNode:
        node = await self._store.find_by_name_and_owner(name, owner)
        if node is None:
            node = await self._store.save(CategoryNode(owner=owner, name=name))
        return node
