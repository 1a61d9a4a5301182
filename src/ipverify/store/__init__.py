"""Event store - per-user login timelines.

Components:
- EventStore: Abstract base class for storage backends
- SQLiteEventStore: Durable SQLite-backed store
- InMemoryEventStore: Dictionary and sorted-list store
- TieBreak: Role given to events with an equal timestamp
"""

from ipverify.store.base import EventStore, ReadWriteLock
from ipverify.store.factory import create_event_store
from ipverify.store.memory_store import InMemoryEventStore
from ipverify.store.policy import DEFAULT_TIE_BREAK, TieBreak
from ipverify.store.sqlite_store import SQLiteEventStore

__all__ = [
    "EventStore",
    "ReadWriteLock",
    "SQLiteEventStore",
    "InMemoryEventStore",
    "TieBreak",
    "DEFAULT_TIE_BREAK",
    "create_event_store",
]
