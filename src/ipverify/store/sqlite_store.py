"""SQLite-backed event store.

The sqlite3 module allows a connection to be shared between threads when
``check_same_thread`` is off, but concurrent writers on one connection are
not safe, so every statement runs under the store's read/write lock.
"""

import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Union

from ipverify.common.constants import StoreConstants
from ipverify.common.exceptions import DuplicateEventError, StoreError
from ipverify.core.types import LoginEvent
from ipverify.store.base import EventStore, Neighbors
from ipverify.store.policy import DEFAULT_TIE_BREAK, TieBreak, sql_operators


logger = logging.getLogger(__name__)

_TABLE = StoreConstants.TABLE_NAME
_COLUMNS = "event_id, user_id, ip_address, unix_timestamp"

_CREATE_TABLE = f"""
    CREATE TABLE IF NOT EXISTS {_TABLE} (
        event_id TEXT NOT NULL PRIMARY KEY,
        user_id TEXT NOT NULL,
        ip_address TEXT NOT NULL,
        unix_timestamp INTEGER NOT NULL
    )
"""

_CREATE_INDEX = f"""
    CREATE INDEX IF NOT EXISTS {StoreConstants.USER_TIME_INDEX}
    ON {_TABLE} (user_id, unix_timestamp)
"""

_INSERT = f"INSERT INTO {_TABLE} ({_COLUMNS}) VALUES (?, ?, ?, ?)"


def _row_to_event(row) -> LoginEvent:
    return LoginEvent(
        event_id=row[0],
        user_id=row[1],
        ip_address=row[2],
        unix_timestamp=row[3],
    )


class SQLiteEventStore(EventStore):
    """Event store persisted in a SQLite database file (or ``:memory:``)."""

    def __init__(
        self,
        path: Union[str, Path] = StoreConstants.MEMORY_PATH,
        tie_break: TieBreak = DEFAULT_TIE_BREAK,
    ):
        """Open (and if needed create) the event database.

        Args:
            path: Database file location, or ":memory:"
            tie_break: Role given to events with an equal timestamp

        Raises:
            StoreError: If the database cannot be opened or initialized
        """
        super().__init__(tie_break=tie_break)
        self.path = str(path)
        self._closed = False

        try:
            self._conn = sqlite3.connect(
                self.path, check_same_thread=False, isolation_level=None
            )
            self._create_schema()
        except sqlite3.Error as e:
            logger.error(f"Unable to open event database {self.path}: {e}")
            raise StoreError(
                f"unable to open database: {e}", details={"path": self.path}
            ) from e

        prev_op, next_op = sql_operators(self.tie_break)
        # Excluding the anchor id keeps a just-inserted event from being
        # reported as its own neighbour.
        self._prev_query = f"""
            SELECT {_COLUMNS} FROM {_TABLE}
            WHERE user_id = ? AND event_id != ? AND unix_timestamp {prev_op} ?
            ORDER BY unix_timestamp DESC, event_id DESC LIMIT 1
        """
        self._next_query = f"""
            SELECT {_COLUMNS} FROM {_TABLE}
            WHERE user_id = ? AND event_id != ? AND unix_timestamp {next_op} ?
            ORDER BY unix_timestamp ASC, event_id ASC LIMIT 1
        """

    def _create_schema(self) -> None:
        existing = self._conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
            (_TABLE,),
        ).fetchone()
        self._conn.execute(_CREATE_TABLE)
        self._conn.execute(_CREATE_INDEX)
        if existing is None:
            logger.info(f"Created table {_TABLE} with index {StoreConstants.USER_TIME_INDEX}")

    def add_record(self, event: LoginEvent) -> None:
        """Add a single login event to the database."""
        with self._lock.write_locked():
            logger.debug(f"Adding event {event.event_id} for user {event.user_id}")
            try:
                self._conn.execute(
                    _INSERT,
                    (event.event_id, event.user_id, event.ip_address, event.unix_timestamp),
                )
            except sqlite3.IntegrityError as e:
                logger.error(f"Adding event {event.event_id} failed: {e}")
                raise DuplicateEventError(event.event_id) from e
            except (sqlite3.Error, OverflowError) as e:
                logger.error(f"Adding event {event.event_id} failed: {e}")
                raise StoreError(
                    f"adding event failed: {e}", details={"event_id": event.event_id}
                ) from e

    def get_neighbors(self, user_id: str, event_id: str, timestamp: int) -> Neighbors:
        """Get the events just before and just after ``timestamp`` for a user.

        Two queries run under one read lock: the latest of the earlier
        events and the earliest of the later ones.
        """
        params = (user_id, event_id, timestamp)
        with self._lock.read_locked():
            prev = self._fetch_one(self._prev_query, params)
            nxt = self._fetch_one(self._next_query, params)
        return prev, nxt

    def get_all_rows(self) -> List[LoginEvent]:
        return self._fetch_all(
            f"SELECT {_COLUMNS} FROM {_TABLE} ORDER BY unix_timestamp ASC, event_id ASC",
            (),
        )

    def get_user_events(self, user_id: str) -> List[LoginEvent]:
        return self._fetch_all(
            f"SELECT {_COLUMNS} FROM {_TABLE} WHERE user_id = ? "
            "ORDER BY unix_timestamp ASC, event_id ASC",
            (user_id,),
        )

    def clear(self) -> None:
        """Delete all rows from the table."""
        with self._lock.write_locked():
            try:
                self._conn.execute(f"DELETE FROM {_TABLE}")
            except sqlite3.Error as e:
                logger.error(f"Clearing event table failed: {e}")
                raise StoreError(f"clearing events failed: {e}") from e
        logger.info("Event store cleared")

    def shutdown(self) -> None:
        """Close the database connection."""
        with self._lock.write_locked():
            if self._closed:
                return
            self._closed = True
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.warning(f"SQLite shutdown error: {e}")

    def _fetch_one(self, query: str, params: tuple) -> Optional[LoginEvent]:
        try:
            row = self._conn.execute(query, params).fetchone()
        except (sqlite3.Error, OverflowError) as e:
            logger.error(f"Event query failed: {e}")
            raise StoreError(f"event query failed: {e}") from e
        return _row_to_event(row) if row is not None else None

    def _fetch_all(self, query: str, params: tuple) -> List[LoginEvent]:
        with self._lock.read_locked():
            try:
                rows = self._conn.execute(query, params).fetchall()
            except sqlite3.Error as e:
                logger.error(f"Event query failed: {e}")
                raise StoreError(f"event query failed: {e}") from e
        return [_row_to_event(row) for row in rows]
