"""Event store factory."""

import logging
from pathlib import Path
from typing import Optional, Union

from ipverify.common.constants import StoreConstants
from ipverify.common.exceptions import ConfigurationError, StoreError
from ipverify.store.base import EventStore
from ipverify.store.memory_store import InMemoryEventStore
from ipverify.store.policy import DEFAULT_TIE_BREAK, TieBreak
from ipverify.store.sqlite_store import SQLiteEventStore


logger = logging.getLogger(__name__)

BACKEND_SQLITE = "sqlite"
BACKEND_MEMORY = "memory"


def create_event_store(
    backend: str = BACKEND_SQLITE,
    path: Optional[Union[str, Path]] = None,
    tie_break: TieBreak = DEFAULT_TIE_BREAK,
) -> EventStore:
    """Factory method to create an event store.

    Args:
        backend: "sqlite" or "memory"
        path: SQLite database location; ":memory:" if not provided. The
              parent directory of a file location is created if missing.
        tie_break: Role given to events with an equal timestamp

    Returns:
        Configured EventStore instance
    """
    if backend == BACKEND_SQLITE:
        db_path = path if path is not None else StoreConstants.MEMORY_PATH
        if str(db_path) != StoreConstants.MEMORY_PATH:
            try:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StoreError(
                    f"unable to create database directory: {e}",
                    details={"path": str(db_path)},
                ) from e
        logger.info(f"Using SQLite event store at {db_path}")
        return SQLiteEventStore(db_path, tie_break=tie_break)
    if backend == BACKEND_MEMORY:
        logger.info("Using in-memory event store")
        return InMemoryEventStore(tie_break=tie_break)
    raise ConfigurationError(
        f"Unknown store backend: {backend}", details={"backend": backend}
    )
