"""API Gateway - FastAPI application for the IP verify service.

Endpoints:
    GET  /v1/status  liveness message
    POST /v1/verify  record a login and check it for impossible travel
    GET  /v1/reset   clear all recorded logins (test/ops use)
"""

import logging
import threading
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ipverify.api.schemas import StatusResponse, VerifyRequest, VerifyResponse
from ipverify.common.config import get_config
from ipverify.common.constants import APIConstants
from ipverify.common.exceptions import IPVerifyException
from ipverify.service import VerificationService, create_verification_service


logger = logging.getLogger(__name__)


class ServiceManager:
    """Thread-safe service singleton manager."""

    _instance: Optional[VerificationService] = None
    _lock = threading.Lock()
    _initialized = False

    @classmethod
    def get_service(cls) -> VerificationService:
        """Get or create the verification service instance (thread-safe)."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = create_verification_service()
                    cls._initialized = True
                    logger.info("VerificationService initialized")
        return cls._instance

    @classmethod
    def set_service(cls, service: VerificationService) -> None:
        """Install an explicitly constructed service."""
        with cls._lock:
            cls._instance = service
            cls._initialized = True

    @classmethod
    def shutdown(cls) -> None:
        """Shutdown the service and release resources."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown()
                cls._instance = None
                cls._initialized = False
                logger.info("VerificationService shutdown complete")


def get_service() -> VerificationService:
    """Get the verification service instance."""
    return ServiceManager.get_service()


def _status(code: int, message: str, request: Request) -> JSONResponse:
    headers = {}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        headers["X-Request-ID"] = request_id
    return JSONResponse(
        status_code=code,
        content=StatusResponse(status=message).model_dump(),
        headers=headers,
    )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field with its plain message."""
    request_id = getattr(request.state, "request_id", None)
    errors = exc.errors()
    message = "invalid request"
    if errors:
        first = errors[0]
        ctx_error = (first.get("ctx") or {}).get("error")
        message = str(ctx_error) if ctx_error is not None else first.get("msg", message)
    logger.warning(
        "Validation error",
        extra={"request_id": request_id, "error": message}
    )
    return _status(400, message, request)


async def ipverify_error_handler(request: Request, exc: IPVerifyException) -> JSONResponse:
    """Map the service error taxonomy onto HTTP status codes."""
    request_id = getattr(request.state, "request_id", None)
    code = 400 if exc.client_error else 500
    logger.error(
        "Invoke error",
        extra={
            "request_id": request_id,
            "error": exc.message,
            "error_code": exc.code,
            "details": exc.details,
            "status_code": code,
        }
    )
    return _status(code, exc.message, request)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors.

    Logs full exception for debugging but returns sanitized message to client.
    """
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "Unexpected error",
        extra={"request_id": request_id, "error_type": type(exc).__name__}
    )
    return _status(500, "an unexpected error occurred", request)


# =============================================================================
# APPLICATION
# =============================================================================

def create_app(
    service: Optional[VerificationService] = None,
    enable_docs: Optional[bool] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        service: Service to serve requests with. When omitted, one is built
                 from configuration at startup.
        enable_docs: Serve /docs and /redoc. Read from configuration when
                     omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info("IPVerify API Gateway starting up...")
        if service is not None:
            ServiceManager.set_service(service)
        else:
            get_service()
        logger.info("IPVerify API Gateway ready")

        yield

        logger.info("IPVerify API Gateway shutting down...")
        ServiceManager.shutdown()
        logger.info("IPVerify API Gateway shutdown complete")

    if enable_docs is None:
        enable_docs = get_config().enable_docs

    app = FastAPI(
        title="IPVerify API Gateway",
        description="Impossible travel detection for login events.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
    )

    def current_service() -> VerificationService:
        if service is not None:
            return service
        return get_service()

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IPVerifyException, ipverify_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID to each request for tracing."""
        request_id = f"req_{uuid4().hex[:12]}"
        request.state.request_id = request_id
        logger.info(
            "Handling URL",
            extra={"request_id": request_id, "url": str(request.url)}
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get(APIConstants.STATUS_URL, response_model=StatusResponse)
    def get_status() -> StatusResponse:
        """Liveness check."""
        return StatusResponse(status=APIConstants.STATUS_MESSAGE)

    @app.post(
        APIConstants.VERIFY_URL,
        response_model=VerifyResponse,
        response_model_exclude_none=True,
        responses={
            400: {"description": "Invalid, replayed or unlocatable request", "model": StatusResponse},
            500: {"description": "Event store failure", "model": StatusResponse},
        },
        summary="Verify a login for impossible travel",
    )
    def verify(
        request: VerifyRequest,
        svc: VerificationService = Depends(current_service),
    ) -> VerifyResponse:
        """Record a login and report the travel speed to and from its neighbours."""
        result = svc.verify_event(request.to_event())
        return VerifyResponse.from_result(result)

    @app.get(APIConstants.RESET_URL, response_model=StatusResponse)
    def reset(svc: VerificationService = Depends(current_service)) -> StatusResponse:
        """Delete every recorded login."""
        svc.reset()
        return StatusResponse(status="reset")

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "service": APIConstants.SERVICE_NAME}

    @app.get("/ready")
    async def readiness_check() -> dict:
        """Readiness check endpoint.

        Returns 503 until a service is available.
        """
        if service is None and not ServiceManager._initialized:
            raise HTTPException(status_code=503, detail="not_ready")
        return {"status": "ready", "service": APIConstants.SERVICE_NAME}

    return app


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ipverify.api.gateway:create_app",
        factory=True,
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level="info",
    )
