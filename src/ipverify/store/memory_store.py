"""In-memory event store.

Keeps a global id index for uniqueness plus one sorted list of
``(timestamp, event_id)`` keys per user, so neighbour lookups are a
binary search. Nothing survives a restart; used for tests and for
deployments that do not need durability.
"""

import bisect
import logging
from typing import Dict, List, Optional, Tuple

from ipverify.common.constants import StoreConstants
from ipverify.common.exceptions import DuplicateEventError, StoreError
from ipverify.core.types import LoginEvent
from ipverify.store.base import EventStore, Neighbors
from ipverify.store.policy import DEFAULT_TIE_BREAK, TieBreak, boundary_key


logger = logging.getLogger(__name__)


def _check_timestamp(timestamp: int) -> None:
    # Same range as the SQLite INTEGER column
    if not -StoreConstants.MAX_TIMESTAMP - 1 <= timestamp <= StoreConstants.MAX_TIMESTAMP:
        raise StoreError(
            f"timestamp out of range: {timestamp}", details={"timestamp": timestamp}
        )


class InMemoryEventStore(EventStore):
    """Event store backed by dictionaries and sorted per-user timelines."""

    def __init__(self, tie_break: TieBreak = DEFAULT_TIE_BREAK):
        super().__init__(tie_break=tie_break)
        self._events: Dict[str, LoginEvent] = {}
        self._timelines: Dict[str, List[Tuple[int, str]]] = {}

    def add_record(self, event: LoginEvent) -> None:
        _check_timestamp(event.unix_timestamp)
        with self._lock.write_locked():
            if event.event_id in self._events:
                logger.error(f"Adding event {event.event_id} failed: duplicate id")
                raise DuplicateEventError(event.event_id)
            logger.debug(f"Adding event {event.event_id} for user {event.user_id}")
            self._events[event.event_id] = event
            timeline = self._timelines.setdefault(event.user_id, [])
            bisect.insort(timeline, event.sort_key())

    def get_neighbors(self, user_id: str, event_id: str, timestamp: int) -> Neighbors:
        _check_timestamp(timestamp)
        with self._lock.read_locked():
            timeline = self._timelines.get(user_id)
            if not timeline:
                return None, None

            split = bisect.bisect_left(timeline, boundary_key(timestamp, self.tie_break))
            prev = self._nearest(timeline, range(split - 1, -1, -1), event_id)
            nxt = self._nearest(timeline, range(split, len(timeline)), event_id)
            return prev, nxt

    def _nearest(self, timeline, indexes, excluded_id: str) -> Optional[LoginEvent]:
        # At most one key can match the excluded id, so this looks at
        # two entries at most.
        for i in indexes:
            _, candidate_id = timeline[i]
            if candidate_id != excluded_id:
                return self._events[candidate_id]
        return None

    def get_all_rows(self) -> List[LoginEvent]:
        with self._lock.read_locked():
            return sorted(self._events.values(), key=LoginEvent.sort_key)

    def get_user_events(self, user_id: str) -> List[LoginEvent]:
        with self._lock.read_locked():
            return [self._events[eid] for _, eid in self._timelines.get(user_id, [])]

    def clear(self) -> None:
        with self._lock.write_locked():
            self._events.clear()
            self._timelines.clear()
        logger.info("Event store cleared")

    def shutdown(self) -> None:
        # Nothing to release; contents are left readable.
        pass

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._events)
