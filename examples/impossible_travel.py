"""Example: impossible travel between two university networks."""

import uuid

from ipverify.common.logging import get_logger
from ipverify.core.types import GeoPoint, LoginEvent
from ipverify.geo.lookup import StaticLookup
from ipverify.service import VerificationService
from ipverify.store import InMemoryEventStore

logger = get_logger(__name__)

BROWN = "128.148.252.151"
FAU = "131.91.101.181"
NOW = 1514764800
HOUR = 3600


def example_impossible_travel():
    """
    Example scenario: Bob logs in from Boca Raton, then from Providence.

    1. First login has no neighbours
    2. Second login 72 hours later: ~16 mph, fine
    3. Third login one hour after the first: ~1176 mph, suspicious
    """
    lookup = StaticLookup({
        BROWN: GeoPoint(41.8244, -71.408, 5),
        FAU: GeoPoint(26.3796, -80.1029, 5),
    })
    service = VerificationService(store=InMemoryEventStore(), lookup=lookup)

    for ip, ts in [(FAU, NOW), (BROWN, NOW + 72 * HOUR), (BROWN, NOW + HOUR)]:
        event = LoginEvent(
            event_id=str(uuid.uuid4()),
            user_id="bob",
            ip_address=ip,
            unix_timestamp=ts,
        )
        result = service.verify_event(event)
        logger.info(f"Login from {ip} at {ts}: suspicious={result.suspicious}")
        for label, report in (("preceding", result.preceding), ("subsequent", result.subsequent)):
            if report is not None:
                logger.info(
                    f"  {label}: {report.ip_address} speed={report.speed} "
                    f"suspicious={report.suspicious}"
                )

    service.shutdown()


if __name__ == "__main__":
    example_impossible_travel()
