"""State projector: projects category events into the categories table.

The read side of the CQRS pattern. Each handler turns one event into the
SQL that keeps the materialized forest in step with the log; the read
methods answer the lookups the tree services need.
"""

import logging
from collections.abc import Awaitable, Callable

from cattree.db.connection import Database
from cattree.models import (
    CategoryCreatedPayload,
    CategoryNode,
    CategoryRemovedPayload,
    CategoryReparentedPayload,
    EventEnvelope,
)

logger = logging.getLogger(__name__)


class StateProjector:
    """Projects events into the materialized categories table."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._handlers: dict[str, Callable[[EventEnvelope], Awaitable[None]]] = {
            "CategoryCreated": self._handle_category_created,
            "CategoryReparented": self._handle_category_reparented,
            "CategoryRemoved": self._handle_category_removed,
        }

    async def project(self, events: list[EventEnvelope]) -> None:
        """Project a batch of events into materialized tables."""
        for event in events:
            handler = self._handlers.get(event.event_type)
            if handler:
                await handler(event)
            else:
                logger.warning("No projection for event type %r, skipping", event.event_type)

    # -- Reads --

    async def get_node(self, node_id: str) -> CategoryNode | None:
        row = await self._db.fetchone(
            "SELECT * FROM categories WHERE node_id = ?", (node_id,)
        )
        return _row_to_node(row) if row is not None else None

    async def get_node_by_name(self, name: str, owner: str) -> CategoryNode | None:
        """Exact (case-sensitive) lookup of a name within one owner's forest."""
        row = await self._db.fetchone(
            "SELECT * FROM categories WHERE owner = ? AND name = ?",
            (owner, name),
        )
        return _row_to_node(row) if row is not None else None

    async def get_roots(self, owner: str) -> list[CategoryNode]:
        """Parentless nodes for an owner, in insertion order."""
        rows = await self._db.fetchall(
            "SELECT * FROM categories WHERE owner = ? AND parent_id IS NULL "
            "ORDER BY position",
            (owner,),
        )
        return [_row_to_node(row) for row in rows]

    async def get_children(self, node_id: str) -> list[CategoryNode]:
        """Direct children of a node, in the order they were attached."""
        rows = await self._db.fetchall(
            "SELECT * FROM categories WHERE parent_id = ? ORDER BY position",
            (node_id,),
        )
        return [_row_to_node(row) for row in rows]

    async def get_subtree_ids(self, node_id: str) -> list[str]:
        """The node and all of its descendants."""
        rows = await self._db.fetchall(
            """
            WITH RECURSIVE subtree(node_id) AS (
                SELECT node_id FROM categories WHERE node_id = ?
                UNION ALL
                SELECT c.node_id FROM categories c
                JOIN subtree s ON c.parent_id = s.node_id
            )
            SELECT node_id FROM subtree
            """,
            (node_id,),
        )
        return [row["node_id"] for row in rows]

    async def get_nodes(self, owner: str) -> list[CategoryNode]:
        """Every node for an owner, in insertion order."""
        rows = await self._db.fetchall(
            "SELECT * FROM categories WHERE owner = ? ORDER BY position",
            (owner,),
        )
        return [_row_to_node(row) for row in rows]

    # -- Handlers --

    async def _handle_category_created(self, event: EventEnvelope) -> None:
        """Project a CategoryCreated event into the categories table."""
        payload = CategoryCreatedPayload.model_validate(event.payload)
        await self._db.execute(
            """
            INSERT INTO categories
                (node_id, owner, name, parent_id, position, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                payload.node_id,
                event.owner,
                payload.name,
                payload.parent_id,
                event.sequence_num,
                event.timestamp.isoformat()
                if hasattr(event.timestamp, "isoformat")
                else str(event.timestamp),
            ),
        )

    async def _handle_category_reparented(self, event: EventEnvelope) -> None:
        """Move a node under a new parent; it sorts after its new siblings."""
        payload = CategoryReparentedPayload.model_validate(event.payload)
        await self._db.execute(
            "UPDATE categories SET parent_id = ?, position = ? WHERE node_id = ?",
            (payload.new_parent_id, event.sequence_num, payload.node_id),
        )

    async def _handle_category_removed(self, event: EventEnvelope) -> None:
        """Delete a node and its subtree.

        removed_node_ids lists parents before children, so walking it backwards
        deletes leaves first and the foreign-key cascade never nests deeply.
        The cascade still covers events logged without the id list.
        """
        payload = CategoryRemovedPayload.model_validate(event.payload)
        for node_id in reversed(payload.removed_node_ids or [payload.node_id]):
            await self._db.execute("DELETE FROM categories WHERE node_id = ?", (node_id,))


def _row_to_node(row) -> CategoryNode:
    return CategoryNode(
        node_id=row["node_id"],
        owner=row["owner"],
        name=row["name"],
        parent_id=row["parent_id"],
        position=row["position"],
        created_at=row["created_at"],
    )
