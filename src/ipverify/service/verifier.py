"""Verification Service - impossible travel classification.

This service records an incoming login, finds the user's neighbouring
logins and classifies the travel between them, providing a clean
interface for the API layer.

Design principles:
- Store and lookup are injected, never global
- The event is recorded before neighbours are queried
- Failures are terminal for the request; no internal retries
- No partial results
"""

import logging
from typing import Optional, Tuple

from ipverify.common.constants import SpeedConstants
from ipverify.common.exceptions import StoreError
from ipverify.core.types import (
    GeoPoint,
    LoginEvent,
    NeighborPair,
    NeighborReport,
    NeighborRole,
    VerificationResult,
)
from ipverify.geo.distance import calculate_speed, is_suspicious
from ipverify.geo.lookup import GeoLocationLookup
from ipverify.store.base import EventStore


logger = logging.getLogger(__name__)


class VerificationService:
    """Service for verifying login events against a user's timeline.

    Orchestrates:
    1. Recording the event in the store
    2. Geolocating the event
    3. Retrieving the preceding and subsequent events
    4. Computing implied speed and suspicion for each neighbour

    Error Handling:
    - DuplicateEventError: the event id was already recorded
    - LocationLookupError: an IP address could not be geolocated
    - StoreError: the store failed
    """

    def __init__(
        self,
        store: EventStore,
        lookup: GeoLocationLookup,
        max_speed: int = SpeedConstants.MAX_SPEED_MPH,
    ):
        """Initialize the service.

        Args:
            store: Event store shared by all verifications
            lookup: IP geolocation lookup
            max_speed: Speed (miles/hour) above which travel is suspicious
        """
        self.store = store
        self.lookup = lookup
        self.max_speed = max_speed

    def verify_event(self, event: LoginEvent) -> VerificationResult:
        """Verify a login event.

        Args:
            event: The login to record and classify

        Returns:
            VerificationResult with the current location and a report for
            each neighbour that exists.
        """
        # Record first: of two near-simultaneous requests for one user,
        # the later one then sees the earlier as a neighbour.
        self.store.add_record(event)

        current = self.lookup.resolve(event.ip_address)

        prev, nxt = self.store.get_neighbors(
            event.user_id, event.event_id, event.unix_timestamp
        )

        preceding = self._report(event, current, prev, NeighborRole.PREDECESSOR)
        subsequent = self._report(event, current, nxt, NeighborRole.SUCCESSOR)

        result = VerificationResult(
            current=current, preceding=preceding, subsequent=subsequent
        )
        if result.suspicious:
            logger.info(
                f"Suspicious travel for user {event.user_id} at event {event.event_id}"
            )
        return result

    def classify_pair(
        self,
        anchor: LoginEvent,
        anchor_loc: GeoPoint,
        neighbor: LoginEvent,
        role: NeighborRole,
    ) -> Tuple[NeighborPair, GeoPoint]:
        """Compute the implied speed between an event and a neighbour."""
        neighbor_loc = self.lookup.resolve(neighbor.ip_address)
        speed = calculate_speed(
            neighbor_loc.latitude, neighbor_loc.longitude, neighbor.unix_timestamp,
            anchor_loc.latitude, anchor_loc.longitude, anchor.unix_timestamp,
        )
        pair = NeighborPair(
            anchor=anchor,
            neighbor=neighbor,
            role=role,
            implied_speed=speed,
            suspicious=is_suspicious(speed, self.max_speed),
        )
        return pair, neighbor_loc

    def _report(
        self,
        anchor: LoginEvent,
        anchor_loc: GeoPoint,
        neighbor: Optional[LoginEvent],
        role: NeighborRole,
    ) -> Optional[NeighborReport]:
        if neighbor is None:
            return None
        pair, neighbor_loc = self.classify_pair(anchor, anchor_loc, neighbor, role)
        logger.debug(
            f"{role.value} {neighbor.event_id}: speed={pair.implied_speed} "
            f"suspicious={pair.suspicious}"
        )
        return NeighborReport(
            ip_address=neighbor.ip_address,
            speed=pair.implied_speed,
            suspicious=pair.suspicious,
            location=neighbor_loc,
            unix_timestamp=neighbor.unix_timestamp,
        )

    def reset(self) -> None:
        """Delete every recorded event.

        Raises:
            StoreError: If the store fails
        """
        try:
            self.store.clear()
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"reset failed: {e}") from e

    def shutdown(self) -> None:
        """Release the lookup and the store."""
        try:
            self.lookup.close()
        except Exception as e:
            logger.warning(f"Geolocation lookup shutdown error: {e}")
        self.store.shutdown()
        logger.info("VerificationService shutdown complete")
