"""FastAPI application entry point."""
import math
import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError

from subscriptions.config import settings
from subscriptions.database import engine
from subscriptions.errors import Conflict, SubscriptionsError
from subscriptions.middleware.logging import LoggingMiddleware, setup_logging
from subscriptions.middleware.metrics import MetricsMiddleware
from subscriptions.schemas.error import REMEDIATION_HINTS, ErrorCode, ErrorDetail, ErrorResponse

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("application_starting", env=settings.app_env)
    yield
    logger.info("application_shutting_down")
    await engine.dispose()


app = FastAPI(
    title="Subscription Accounting Service",
    description="Plans, subscriptions, quotas, usage and overage reporting",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


def request_id_for(request: Request) -> str:
    """Request id bound by the logging middleware, or a fresh one."""
    return request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex[:12]}"


def error_response(status_code: int, body: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    """Serialize an ErrorResponse."""
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


@app.exception_handler(SubscriptionsError)
async def domain_exception_handler(request: Request, exc: SubscriptionsError) -> JSONResponse:
    """
    Handle accounting errors raised by the services.

    The status code and machine-readable code come from the exception class;
    conflicts carry a ``Retry-After`` header.
    """
    request_id = request_id_for(request)

    logger.warning(
        "domain_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        code=exc.code,
        error_message=exc.message,
    )

    body = ErrorResponse(
        error=type(exc).__name__,
        message=exc.message,
        details=[ErrorDetail(code=exc.code, message=exc.message, value=exc.details or None)],
        remediation=REMEDIATION_HINTS.get(exc.code),
        request_id=request_id,
    )
    headers = {"Retry-After": "1"} if isinstance(exc, Conflict) else None
    return error_response(exc.status_code, body, headers)


def echoed_input(value: Any) -> Any:
    """Scalar input worth echoing back; NaN and infinities are not valid JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value if isinstance(value, (str, int, float, bool)) else None


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors with structured response.

    Returns 422 with field-level details.
    """
    request_id = request_id_for(request)

    code_mapping = {
        "uuid_parsing": ErrorCode.INVALID_UUID,
        "uuid_type": ErrorCode.INVALID_UUID,
        "enum": ErrorCode.INVALID_ENUM_VALUE,
        "missing": ErrorCode.MISSING_REQUIRED_FIELD,
    }

    details = [
        ErrorDetail(
            code=code_mapping.get(error["type"], ErrorCode.VALIDATION_ERROR),
            message=error["msg"],
            field=".".join(str(loc) for loc in error["loc"]),
            value=echoed_input(error.get("input")),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_count=len(details),
    )

    body = ErrorResponse(
        error="ValidationError",
        message="Request validation failed",
        details=details,
        remediation="Check the API documentation for correct request format at /docs",
        request_id=request_id,
    )
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, body)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Handle database errors.

    Returns 503 Service Unavailable with a ``Retry-After`` header.
    """
    request_id = request_id_for(request)

    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    # Don't expose internal database details in production
    error_message = "Database temporarily unavailable" if settings.app_env == "production" else str(exc)

    body = ErrorResponse(
        error="DatabaseError",
        message="A database error occurred",
        details=[ErrorDetail(code=ErrorCode.DATABASE_ERROR, message=error_message)],
        remediation=REMEDIATION_HINTS.get(ErrorCode.DATABASE_ERROR),
        request_id=request_id,
    )
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, body, {"Retry-After": "30"})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other uncaught exceptions.

    Logs the stack trace and returns a safe 500 response.
    """
    request_id = request_id_for(request)

    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        stack_trace=traceback.format_exc(),
    )

    body = ErrorResponse(
        error="InternalServerError",
        message="An unexpected error occurred",
        details=[
            ErrorDetail(
                code=ErrorCode.INTERNAL_ERROR,
                message=str(exc) if settings.debug else "Internal server error",
            )
        ],
        remediation="Please contact support with the request ID",
        request_id=request_id,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, body)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "Subscription Accounting Service",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
    }


# Include routers
from subscriptions.api.v1 import addons, health, plans, resource_types, subscriptions, usage  # noqa: E402

app.include_router(health.router, tags=["Health"])
app.include_router(resource_types.router, prefix="/v1")
app.include_router(plans.router, prefix="/v1")
app.include_router(subscriptions.router, prefix="/v1")
app.include_router(subscriptions.users_router, prefix="/v1")
app.include_router(usage.router, prefix="/v1")
app.include_router(addons.router, prefix="/v1")
app.include_router(addons.subscription_router, prefix="/v1")
