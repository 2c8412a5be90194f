"""Tree service: single-node edits on an owner's category forest."""

import logging
from collections.abc import Sequence

from cattree.db.connection import Database
from cattree.models import CategoryNode, TreeResult
from cattree.responses import reply
from cattree.trees.store import CategoryStore

logger = logging.getLogger(__name__)


class TreeService:
    """Adds roots and children, removes subtrees.

    Every operation holds the owner's lock and runs in one transaction, so a
    reader never sees a child linked on one side only.
    """

    def __init__(self, db: Database, store: CategoryStore | None = None) -> None:
        self._db = db
        self._store = store or CategoryStore(db)

    async def exists(self, name: str, owner: str) -> bool:
        return await self._store.exists(name, owner)

    async def add_root(self, name: str, owner: str) -> TreeResult:
        """Create a parentless category. Fails if the name is taken."""
        async with self._db.owner_lock(owner), self._db.transaction():
            if await self._store.exists(name, owner):
                logger.warning("Category %r already exists for owner %s", name, owner)
                return TreeResult.failure(
                    "already_exists", reply("tree", "already_exists", name=name), name=name
                )
            await self._store.save(CategoryNode(owner=owner, name=name))

        logger.info("Root category %r added for owner %s", name, owner)
        return TreeResult.success(reply("tree", "root_added", name=name), name=name)

    async def add_child(self, tokens: Sequence[str], owner: str) -> TreeResult:
        """Attach a child under a parent named by a prefix of ``tokens``.

        Names may contain spaces, so the split point is found by trying ever
        longer prefixes; the first one naming an existing category wins.
        An existing child is moved rather than duplicated. Tokens are re-split
        on whitespace, so blank ones never become part of a name.
        """
        tokens = " ".join(tokens).split()
        async with self._db.owner_lock(owner), self._db.transaction():
            resolved = await self.resolve_parent(tokens, owner)
            if resolved is None:
                logger.warning("No parent prefix of %r exists for owner %s", list(tokens), owner)
                return TreeResult.failure("parent_not_found", reply("tree", "parent_not_found"))
            parent_name, child_name = resolved

            if parent_name == child_name:
                logger.warning("Category %r given as its own parent", parent_name)
                return TreeResult.failure(
                    "self_parent", reply("tree", "self_parent"), name=child_name, parent=parent_name
                )

            parent = await self._store.find_by_name_and_owner(parent_name, owner)
            assert parent is not None
            child = await self._store.find_by_name_and_owner(child_name, owner)

            if child is None:
                child = CategoryNode(owner=owner, name=child_name, parent_id=parent.node_id)
            else:
                if child.parent_id == parent.node_id:
                    logger.warning(
                        "Category %r is already a child of %r for owner %s",
                        child_name, parent_name, owner,
                    )
                    return TreeResult.failure(
                        "already_child", reply("tree", "already_child"),
                        name=child_name, parent=parent_name,
                    )
                if parent.node_id in await self._store.find_subtree_ids(child):
                    logger.warning(
                        "Refusing to move %r under its descendant %r", child_name, parent_name
                    )
                    return TreeResult.failure(
                        "cycle", reply("tree", "cycle", name=child_name, parent=parent_name),
                        name=child_name, parent=parent_name,
                    )
                child = child.model_copy(update={"parent_id": parent.node_id})
            await self._store.save(child)

        logger.info("Category %r added under %r for owner %s", child_name, parent_name, owner)
        return TreeResult.success(
            reply("tree", "child_added", name=child_name, parent=parent_name),
            name=child_name, parent=parent_name,
        )

    async def resolve_parent(
        self, tokens: Sequence[str], owner: str
    ) -> tuple[str, str] | None:
        """Split tokens into (parent, child) by the shortest existing parent prefix.

        The child keeps at least one token, so the last token is never tried as
        part of the parent. Returns None when no prefix names a category.
        """
        for split in range(1, len(tokens)):
            candidate = " ".join(tokens[:split])
            if await self._store.exists(candidate, owner):
                return candidate, " ".join(tokens[split:])
        return None

    async def remove_subtree(self, name: str, owner: str) -> TreeResult:
        """Delete a category and everything beneath it."""
        async with self._db.owner_lock(owner), self._db.transaction():
            node = await self._store.find_by_name_and_owner(name, owner)
            if node is None:
                logger.warning("Category %r does not exist for owner %s", name, owner)
                return TreeResult.failure("not_found", reply("tree", "not_found", name=name), name=name)
            removed = await self._store.delete(node)

        logger.info("Removed %r and %d descendant(s) for owner %s", name, len(removed) - 1, owner)
        return TreeResult.success(
            reply("tree", "removed", name=name), name=name, count=len(removed)
        )
