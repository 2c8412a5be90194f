"""Plain-text outline of an owner's category forest."""

from cattree.db.connection import Database
from cattree.responses import reply
from cattree.trees.store import CategoryStore

INDENT = "    "
MARKER = "-   "


class TreeRenderer:
    def __init__(self, db: Database, store: CategoryStore | None = None) -> None:
        self._db = db
        self._store = store or CategoryStore(db)

    async def render(self, owner: str) -> str:
        """One line per category, pre-order, indented four spaces per level.

        Siblings keep insertion order; nothing is sorted. The walk uses an
        explicit stack, so arbitrarily deep chains render.
        """
        async with self._db.owner_lock(owner):
            roots = await self._store.find_roots(owner)
            if not roots:
                return reply("tree", "empty")
            lines: list[str] = []
            stack = [(root, 0) for root in reversed(roots)]
            while stack:
                node, depth = stack.pop()
                lines.append(f"{INDENT * depth}{MARKER}{node.name}\n")
                children = await self._store.find_children(node)
                stack.extend((child, depth + 1) for child in reversed(children))
        return "".join(lines)
