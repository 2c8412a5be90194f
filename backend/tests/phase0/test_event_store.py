"""Contract tests for the EventStore.

test_event_roundtrip is THE CANARY — if it ever fails, something
fundamental is broken. Stop everything and investigate.
"""

import pytest

from cattree.models import CategoryCreatedPayload
from tests.fixtures import make_category_created_envelope


class TestEventStoreCanary:
    """THE CANARY TESTS. Must never break."""

    async def test_event_roundtrip(self, event_store):
        """Append a CategoryCreated event, get_events returns it with correct fields."""
        event = make_category_created_envelope(name="Canary")

        await event_store.append(event)
        events = await event_store.get_events(event.owner)

        assert len(events) == 1
        assert events[0].event_type == "CategoryCreated"
        assert events[0].payload["name"] == "Canary"
        assert events[0].event_id == event.event_id
        assert events[0].owner == event.owner

    async def test_typed_payload(self, event_store):
        event = make_category_created_envelope(name="Typed")
        await event_store.append(event)
        [stored] = await event_store.get_events(event.owner)
        payload = stored.typed_payload()
        assert isinstance(payload, CategoryCreatedPayload)
        assert payload.name == "Typed"


class TestEventStoreAppend:
    async def test_append_assigns_sequence_num(self, event_store):
        """After append, the returned sequence_num is set on the envelope too."""
        event = make_category_created_envelope()
        seq = await event_store.append(event)
        assert isinstance(seq, int)
        assert seq > 0
        assert event.sequence_num == seq

    async def test_sequence_nums_increase(self, event_store):
        first = await event_store.append(make_category_created_envelope(name="A"))
        second = await event_store.append(make_category_created_envelope(name="B"))
        assert second > first

    async def test_append_duplicate_event_id_fails(self, event_store):
        """Appending the same event_id twice raises an error."""
        event = make_category_created_envelope()
        await event_store.append(event)
        with pytest.raises(Exception):  # IntegrityError
            await event_store.append(event)


class TestEventStoreScoping:
    async def test_events_filtered_by_owner(self, event_store):
        await event_store.append(make_category_created_envelope(owner="a", name="A"))
        await event_store.append(make_category_created_envelope(owner="b", name="B"))

        events = await event_store.get_events("a")
        assert [e.payload["name"] for e in events] == ["A"]

    async def test_unknown_owner_has_no_events(self, event_store):
        assert await event_store.get_events("nobody") == []
