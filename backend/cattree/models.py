"""Canonical data structures and event types for the category tree service.

Defined once here, referenced everywhere else. Event payloads carry the
type-specific content of each event; the EventEnvelope wraps them with
metadata. TreeResult is the single return type of every tree operation.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

# Literal "-" in the Parent Category column of the exchange table.
ROOT_SENTINEL = "-"

TABLE_HEADERS = ("Category", "Parent Category")

# Worksheet holding the table in the .xlsx exchange format.
SHEET_TITLE = "Category Tree"

# ---------------------------------------------------------------------------
# Canonical data structures
# ---------------------------------------------------------------------------


class CategoryNode(BaseModel):
    """One category. parent_id is the only structural edge."""

    node_id: str | None = None  # assigned by CategoryStore.save on creation
    owner: str
    name: str = Field(min_length=1)
    parent_id: str | None = None
    position: int | None = None  # sequence_num of the creating/attaching event
    created_at: str | None = None


class TableRow(BaseModel):
    """One row of the two-column exchange table."""

    name: str = Field(min_length=1)
    parent: str = Field(default=ROOT_SENTINEL, min_length=1)

    @property
    def is_root(self) -> bool:
        return self.parent == ROOT_SENTINEL


ErrorKind = Literal[
    "already_exists",
    "parent_not_found",
    "self_parent",
    "already_child",
    "not_found",
    "malformed_table",
    "cycle",
]


class TreeResult(BaseModel):
    """Outcome of a tree operation: a success message or an expected failure."""

    ok: bool
    message: str
    error: ErrorKind | None = None
    name: str | None = None
    parent: str | None = None
    count: int | None = None

    @classmethod
    def success(cls, message: str, **fields: Any) -> "TreeResult":
        return cls(ok=True, message=message, **fields)

    @classmethod
    def failure(cls, error: ErrorKind, message: str, **fields: Any) -> "TreeResult":
        return cls(ok=False, error=error, message=message, **fields)


# ---------------------------------------------------------------------------
# Event payloads — one per event type
# ---------------------------------------------------------------------------


class CategoryCreatedPayload(BaseModel):
    node_id: str
    name: str
    parent_id: str | None = None


class CategoryReparentedPayload(BaseModel):
    node_id: str
    old_parent_id: str | None = None
    new_parent_id: str


class CategoryRemovedPayload(BaseModel):
    node_id: str
    name: str
    removed_node_ids: list[str] = Field(default_factory=list)  # subtree, for the log


# ---------------------------------------------------------------------------
# Event type registry
# ---------------------------------------------------------------------------

EVENT_TYPES: dict[str, type[BaseModel]] = {
    "CategoryCreated": CategoryCreatedPayload,
    "CategoryReparented": CategoryReparentedPayload,
    "CategoryRemoved": CategoryRemovedPayload,
}


# ---------------------------------------------------------------------------
# Event envelope
# ---------------------------------------------------------------------------


class EventEnvelope(BaseModel):
    """Wraps every event with metadata. Stored in the events table."""

    event_id: str
    owner: str
    timestamp: datetime
    device_id: str = "local"
    event_type: str
    payload: dict[str, Any]
    sequence_num: int | None = None  # assigned by DB on insert

    def typed_payload(self) -> BaseModel:
        """Deserialize payload into the correct Pydantic model based on event_type."""
        payload_cls = EVENT_TYPES[self.event_type]
        return payload_cls.model_validate(self.payload)
