"""API - HTTP endpoints for the IP verify service.

Endpoints:
    GET  /v1/status
    POST /v1/verify
    GET  /v1/reset

Request field validation happens here; the service receives only
well-formed events.
"""

from ipverify.api.gateway import ServiceManager, create_app
from ipverify.api.schemas import (
    StatusResponse,
    VerifyRequest,
    VerifyResponse,
)

__all__ = [
    "create_app",
    "ServiceManager",
    "VerifyRequest",
    "VerifyResponse",
    "StatusResponse",
]
