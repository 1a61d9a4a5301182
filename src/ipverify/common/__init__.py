"""Common utilities - logging, config, exceptions."""

from ipverify.common.logging import configure_logging, get_logger
from ipverify.common.exceptions import (
    IPVerifyException,
    ConfigurationError,
    DuplicateEventError,
    LocationLookupError,
    MalformedAddressError,
    LocationNotFoundError,
    StoreError,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Exceptions
    "IPVerifyException",
    "ConfigurationError",
    "DuplicateEventError",
    "LocationLookupError",
    "MalformedAddressError",
    "LocationNotFoundError",
    "StoreError",
]
