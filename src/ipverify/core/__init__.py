"""Core domain types."""

from ipverify.core.types import (
    GeoPoint,
    LoginEvent,
    NeighborPair,
    NeighborReport,
    NeighborRole,
    VerificationResult,
)

__all__ = [
    "GeoPoint",
    "LoginEvent",
    "NeighborPair",
    "NeighborReport",
    "NeighborRole",
    "VerificationResult",
]
