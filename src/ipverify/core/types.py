"""Core types and enums."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NeighborRole(str, Enum):
    """Position of a stored event relative to an anchor timestamp."""
    PREDECESSOR = "predecessor"
    SUCCESSOR = "successor"


@dataclass(frozen=True)
class LoginEvent:
    """A recorded login. Immutable once inserted into a store."""
    event_id: str
    user_id: str
    ip_address: str
    unix_timestamp: int

    def sort_key(self) -> tuple:
        """Total order within a user's timeline."""
        return (self.unix_timestamp, self.event_id)


@dataclass(frozen=True)
class GeoPoint:
    """Location resolved from an IP address. Never persisted."""
    latitude: float
    longitude: float
    accuracy_radius: int = 0


@dataclass(frozen=True)
class NeighborPair:
    """Speed verdict between the anchor event and one of its neighbours."""
    anchor: LoginEvent
    neighbor: LoginEvent
    role: NeighborRole
    implied_speed: int
    suspicious: bool


@dataclass(frozen=True)
class NeighborReport:
    """Externally visible view of a neighbouring login."""
    ip_address: str
    speed: int
    suspicious: bool
    location: GeoPoint
    unix_timestamp: int


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying a single login event."""
    current: GeoPoint
    preceding: Optional[NeighborReport] = None
    subsequent: Optional[NeighborReport] = None

    @property
    def suspicious(self) -> bool:
        """True if travel to or from the current login is suspicious."""
        return any(
            report is not None and report.suspicious
            for report in (self.preceding, self.subsequent)
        )
