"""Append-only event store backed by SQLite."""

import json

from cattree.db.connection import Database
from cattree.models import EventEnvelope


class EventStore:
    """Append-only event store. The write side of the CQRS pattern."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def append(self, envelope: EventEnvelope) -> int:
        """Append an event and return the assigned sequence_num.

        The envelope's sequence_num is filled in as well, so the projector can
        use it as an ordering key. Raises IntegrityError if event_id is not
        unique.
        """
        cursor = await self._db.execute(
            """
            INSERT INTO events
                (event_id, owner, timestamp, device_id, event_type, payload)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                envelope.event_id,
                envelope.owner,
                envelope.timestamp.isoformat(),
                envelope.device_id,
                envelope.event_type,
                json.dumps(envelope.payload),
            ),
        )
        assert cursor.lastrowid is not None
        envelope.sequence_num = cursor.lastrowid
        return cursor.lastrowid

    async def get_events(self, owner: str) -> list[EventEnvelope]:
        """Get all events for an owner, ordered by sequence_num."""
        rows = await self._db.fetchall(
            "SELECT * FROM events WHERE owner = ? ORDER BY sequence_num",
            (owner,),
        )
        return [self._row_to_envelope(row) for row in rows]

    @staticmethod
    def _row_to_envelope(row) -> EventEnvelope:
        """Convert a database row to an EventEnvelope."""
        return EventEnvelope(
            event_id=row["event_id"],
            owner=row["owner"],
            timestamp=row["timestamp"],
            device_id=row["device_id"],
            event_type=row["event_type"],
            payload=json.loads(row["payload"]),
            sequence_num=row["sequence_num"],
        )
