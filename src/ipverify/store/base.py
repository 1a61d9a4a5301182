"""Event Store - Abstraction for login event persistence.

This module provides the interface for timeline storage backends,
decoupling the verification logic from specific persistence mechanisms.

Design principles:
- Event ids are globally unique; a duplicate insert fails
- Writes are serialized; reads share access
- Neighbour queries follow an explicit tie-break policy
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from ipverify.core.types import LoginEvent
from ipverify.store.policy import DEFAULT_TIE_BREAK, TieBreak


Neighbors = Tuple[Optional[LoginEvent], Optional[LoginEvent]]


class ReadWriteLock:
    """Shared-reader / exclusive-writer lock.

    Waiting writers block new readers so a steady read load cannot
    starve inserts.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class EventStore(ABC):
    """Abstract base class for event timeline storage backends.

    Implementations must be safe for concurrent use from multiple threads.
    """

    def __init__(self, tie_break: TieBreak = DEFAULT_TIE_BREAK):
        self.tie_break = tie_break
        self._lock = ReadWriteLock()

    @abstractmethod
    def add_record(self, event: LoginEvent) -> None:
        """Insert a new login event.

        Raises:
            DuplicateEventError: If the event id is already stored
            StoreError: If the underlying storage fails
        """

    @abstractmethod
    def get_neighbors(self, user_id: str, event_id: str, timestamp: int) -> Neighbors:
        """Get the user's events immediately before and after ``timestamp``.

        The event identified by ``event_id`` is never returned. An event
        whose timestamp equals ``timestamp`` is placed according to the
        store's tie-break policy.

        Returns:
            (previous, next); either may be None
        """

    @abstractmethod
    def get_all_rows(self) -> List[LoginEvent]:
        """Get every stored event ordered by (timestamp, event id)."""

    @abstractmethod
    def get_user_events(self, user_id: str) -> List[LoginEvent]:
        """Get one user's timeline ordered by (timestamp, event id)."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every stored event."""

    @abstractmethod
    def shutdown(self) -> None:
        """Release resources. Idempotent; errors are logged, not raised."""

    def __enter__(self) -> "EventStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
