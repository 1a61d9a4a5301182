"""Service construction from configuration."""

import logging
from typing import Optional

from ipverify.common.config import Config, get_config
from ipverify.geo.lookup import MaxMindLookup
from ipverify.service.verifier import VerificationService
from ipverify.store.factory import create_event_store


logger = logging.getLogger(__name__)


def create_verification_service(config: Optional[Config] = None) -> VerificationService:
    """Build a VerificationService with the configured store and MaxMind lookup.

    Raises:
        ConfigurationError: If the MaxMind database cannot be opened
        StoreError: If the event store cannot be opened
    """
    config = config or get_config()

    store = create_event_store(
        backend=config.store_backend.value,
        path=config.db_path,
        tie_break=config.tie_break,
    )
    try:
        lookup = MaxMindLookup(config.mmdb_path)
    except Exception:
        store.shutdown()
        raise

    logger.info(
        f"VerificationService configured: store={config.store_backend.value} "
        f"max_speed={config.max_speed} tie_break={config.tie_break.value}"
    )
    return VerificationService(store=store, lookup=lookup, max_speed=config.max_speed)
