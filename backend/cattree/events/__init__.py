"""Category event log and its projection into the categories table."""

from cattree.events.projector import StateProjector
from cattree.events.store import EventStore

__all__ = ["EventStore", "StateProjector"]
