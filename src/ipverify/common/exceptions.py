"""Custom exceptions for IPVerify.

Provides a hierarchy of exceptions for different error types.
All IPVerify exceptions inherit from IPVerifyException.

Client errors (replayed events, unusable IP addresses)
are distinguished from server errors (store faults) by ``client_error``,
which the API layer maps onto HTTP status codes.
"""

from typing import Any, Dict, Optional


class IPVerifyException(Exception):
    """Base exception for all IPVerify errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    client_error = False

    def __init__(
        self,
        message: str,
        code: str = "IPVERIFY_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(IPVerifyException):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class DuplicateEventError(IPVerifyException):
    """Raised when an event id has already been recorded."""

    client_error = True

    def __init__(self, event_id: str, details: Optional[Dict[str, Any]] = None):
        details = details or {}
        details["event_id"] = event_id
        self.event_id = event_id
        super().__init__(
            f"duplicate event id: {event_id}",
            code="DUPLICATE_EVENT",
            details=details,
        )


class LocationLookupError(IPVerifyException):
    """Raised when an IP address cannot be geolocated."""

    client_error = True

    def __init__(
        self,
        message: str,
        ip_address: str,
        code: str = "LOCATION_LOOKUP_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["ip_address"] = ip_address
        self.ip_address = ip_address
        super().__init__(message, code=code, details=details)


class MalformedAddressError(LocationLookupError):
    """Raised when an IP address does not parse."""

    def __init__(self, ip_address: str):
        super().__init__(
            f"invalid IP addr format: {ip_address}",
            ip_address,
            code="MALFORMED_ADDRESS",
        )


class LocationNotFoundError(LocationLookupError):
    """Raised when the lookup has no location for an IP address."""

    def __init__(self, ip_address: str):
        super().__init__(
            f"no location found for IP address: {ip_address}",
            ip_address,
            code="LOCATION_NOT_FOUND",
        )


class StoreError(IPVerifyException):
    """Raised when the underlying event storage fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="STORE_ERROR", details=details)
