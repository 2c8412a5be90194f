"""Category store: owner-scoped lookup and persistence of category nodes.

Writes become events (append, then project) so the log and the materialized
table never disagree. Callers that need several writes to land together run
them inside ``Database.transaction()``.
"""

from datetime import UTC, datetime
from uuid import uuid4

from cattree.db.connection import Database
from cattree.events.projector import StateProjector
from cattree.events.store import EventStore
from cattree.models import (
    CategoryCreatedPayload,
    CategoryNode,
    CategoryRemovedPayload,
    CategoryReparentedPayload,
    EventEnvelope,
)


class CategoryStore:
    """Keyed lookup by (name, owner), insertion-ordered listing, cascading delete."""

    def __init__(
        self,
        db: Database,
        store: EventStore | None = None,
        projector: StateProjector | None = None,
    ) -> None:
        self._db = db
        self._store = store or EventStore(db)
        self._projector = projector or StateProjector(db)

    async def find_by_name_and_owner(self, name: str, owner: str) -> CategoryNode | None:
        return await self._projector.get_node_by_name(name, owner)

    async def exists(self, name: str, owner: str) -> bool:
        return await self._projector.get_node_by_name(name, owner) is not None

    async def find_roots(self, owner: str) -> list[CategoryNode]:
        return await self._projector.get_roots(owner)

    async def find_children(self, node: CategoryNode) -> list[CategoryNode]:
        if node.node_id is None:
            return []
        return await self._projector.get_children(node.node_id)

    async def find_subtree_ids(self, node: CategoryNode) -> list[str]:
        if node.node_id is None:
            return []
        return await self._projector.get_subtree_ids(node.node_id)

    async def save(self, node: CategoryNode) -> CategoryNode:
        """Create or update a node and return its persisted state.

        A node without an id is created. For an existing node only a parent
        change is a structural edit; saving an unchanged node emits nothing.
        """
        if node.node_id is None:
            node_id = str(uuid4())
            event = self._envelope(
                node.owner,
                "CategoryCreated",
                CategoryCreatedPayload(
                    node_id=node_id, name=node.name, parent_id=node.parent_id
                ),
            )
            await self._emit(event)
        else:
            node_id = node.node_id
            current = await self._projector.get_node(node_id)
            if current is None:
                raise NodeNotFoundError(node_id)
            if current.parent_id != node.parent_id:
                if node.parent_id is None:
                    raise InvalidParentError(node_id)
                event = self._envelope(
                    node.owner,
                    "CategoryReparented",
                    CategoryReparentedPayload(
                        node_id=node_id,
                        old_parent_id=current.parent_id,
                        new_parent_id=node.parent_id,
                    ),
                )
                await self._emit(event)

        saved = await self._projector.get_node(node_id)
        assert saved is not None
        return saved

    async def delete(self, node: CategoryNode) -> list[str]:
        """Delete a node and every descendant.

        Returns the ids that were removed.
        """
        if node.node_id is None:
            return []
        removed = await self._projector.get_subtree_ids(node.node_id)
        event = self._envelope(
            node.owner,
            "CategoryRemoved",
            CategoryRemovedPayload(
                node_id=node.node_id, name=node.name, removed_node_ids=removed
            ),
        )
        await self._emit(event)
        return removed

    async def _emit(self, event: EventEnvelope) -> None:
        await self._store.append(event)
        await self._projector.project([event])

    @staticmethod
    def _envelope(owner: str, event_type: str, payload) -> EventEnvelope:
        return EventEnvelope(
            event_id=str(uuid4()),
            owner=owner,
            timestamp=datetime.now(UTC),
            device_id="local",
            event_type=event_type,
            payload=payload.model_dump(),
        )


class NodeNotFoundError(Exception):
    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Category not found: {node_id}")


class InvalidParentError(Exception):
    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Category cannot be detached to a root: {node_id}")
