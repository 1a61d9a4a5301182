"""IPVerify - impossible travel detection for login events."""

__version__ = "0.1.0"
__author__ = "IPVerify Team"

# Core exports
from ipverify.core.types import GeoPoint, LoginEvent, VerificationResult

__all__ = [
    "GeoPoint",
    "LoginEvent",
    "VerificationResult",
]
