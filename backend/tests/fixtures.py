"""Shared test helpers."""

import io
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from openpyxl import Workbook

from cattree.events.projector import StateProjector
from cattree.models import CategoryCreatedPayload, EventEnvelope
from cattree.trees.service import TreeService


def make_category_created_envelope(
    owner: str = "chat-1",
    name: str = "Shoes",
    node_id: str | None = None,
    parent_id: str | None = None,
    **envelope_overrides: Any,
) -> EventEnvelope:
    """Create a CategoryCreated EventEnvelope for testing."""
    payload = CategoryCreatedPayload(
        node_id=node_id or str(uuid4()),
        name=name,
        parent_id=parent_id,
    )
    fields = {
        "event_id": str(uuid4()),
        "owner": owner,
        "timestamp": datetime.now(UTC),
        "device_id": "test",
        "event_type": "CategoryCreated",
        "payload": payload.model_dump(),
    }
    fields.update(envelope_overrides)
    return EventEnvelope(**fields)


async def build_shop_forest(service: TreeService, owner: str) -> None:
    """Two roots with nested children, built through the public operations.

    Clothes
        Shoes
            Sneakers
            Boots
        Hats
    Food
        Fruit
    """
    assert (await service.add_root("Clothes", owner)).ok
    assert (await service.add_root("Food", owner)).ok
    for words in (
        ["Clothes", "Shoes"],
        ["Shoes", "Sneakers"],
        ["Shoes", "Boots"],
        ["Clothes", "Hats"],
        ["Food", "Fruit"],
    ):
        result = await service.add_child(words, owner)
        assert result.ok, result.message


async def forest_edges(projector: StateProjector, owner: str) -> set[tuple[str, str | None]]:
    """(name, parent name) for every node of an owner; None for roots."""
    nodes = await projector.get_nodes(owner)
    names = {n.node_id: n.name for n in nodes}
    return {(n.name, names.get(n.parent_id) if n.parent_id else None) for n in nodes}


def make_workbook(
    records: list[tuple],
    sheet: str = "Category Tree",
    header: tuple = ("Category", "Parent Category"),
) -> bytes:
    """Build .xlsx bytes holding ``header`` then ``records`` on one sheet."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet
    ws.append(list(header))
    for record in records:
        ws.append(list(record))
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
