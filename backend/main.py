# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

import models.schemas as schemas
from core.correlation import (
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.scheduler import setup_scheduler, shutdown_scheduler
from core.sentry_config import init_sentry
from helpers.rate_limiter import limiter
from models.config import settings
from models.exceptions import (
    AlreadyExistsException,
    AuthenticationException,
    BusinessRuleException,
    ConflictException,
    DomainException,
    NotFoundException,
    PermissionDeniedException,
    UnavailableException,
    ValidationException,
    VisibilityDeniedException,
)
from repositories.database import Base, engine, get_db
from routers import (
    auth_router,
    comments_router,
    content_router,
    engagement_router,
    groups_router,
    users_router,
)

# Initialize Sentry BEFORE app creation
init_sentry(settings.SENTRY_DSN, settings.ENVIRONMENT, settings.SENTRY_RELEASE)

# Configure logging with Loguru
configure_logging(settings.ENVIRONMENT)

# Latest migration in alembic/versions
EXPECTED_REVISION = "0001_initial"


def check_schema_version() -> None:
    """Verify database schema version matches expected migration.

    This helps catch cases where the application code expects a newer schema
    than what's deployed in the database.
    """
    from repositories.database import SessionLocal

    db = SessionLocal()
    try:
        result = db.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
        row = result.fetchone()
        if row:
            current_revision = row[0]
            if current_revision != EXPECTED_REVISION:
                logger.warning(
                    f"Database schema mismatch! "
                    f"Current: {current_revision}, Expected: {EXPECTED_REVISION}. "
                    f"Run 'alembic upgrade head' to update the database schema."
                )
            else:
                logger.info(f"Database schema version: {current_revision} (up to date)")
        else:
            logger.warning(
                "No alembic_version found. Database may not be initialized with migrations."
            )
    except SQLAlchemyError as e:
        logger.warning(f"Could not verify schema version: {e!r}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Verify database schema version matches expected migration.
    - Optionally create tables when `AUTO_CREATE_DB` is enabled (development).
    - Start the counter reconciliation scheduler outside of tests.
    """
    if settings.AUTO_CREATE_DB:
        logger.info(
            "AUTO_CREATE_DB enabled; creating database tables via SQLAlchemy create_all()"
        )
        Base.metadata.create_all(bind=engine)
    else:
        check_schema_version()

    if settings.ENVIRONMENT != "test":
        setup_scheduler()

    try:
        yield
    finally:
        if settings.ENVIRONMENT != "test":
            shutdown_scheduler()


app = FastAPI(title="UniClub API", lifespan=lifespan)

# Attach rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request with correlation ID tracking."""
        # Reuse an incoming correlation ID (from the client) when present
        correlation_id = (
            request.headers.get("X-Correlation-ID") or generate_correlation_id()
        )
        set_correlation_id(correlation_id)

        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)

        response.headers["X-Correlation-ID"] = correlation_id

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with performance monitoring."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log timing information."""
        start_time = time.perf_counter()

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request: {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )

        # Warn on slow requests (configurable threshold)
        if duration > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        return response


# The last middleware added runs first, so the correlation ID is set before
# request logging runs.
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

cors_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True if settings.ENVIRONMENT != "development" else False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(
    request: Request,
    exc: DomainException,
    status_code: int,
    label: str,
    headers: dict[str, str] | None = None,
    **extra: str,
) -> JSONResponse:
    """Tag, log and serialize a domain exception."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    logger.warning(
        f"{label}: {exc.message!r}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "correlation_id": exc.correlation_id,
            **extra,
        },
        headers=headers,
    )


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # Use repr() to escape curly braces in exception message
    # (loguru's .format() interprets them as placeholders otherwise)
    logger.exception(
        f"Unhandled exception: {exc!r}",
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "correlation_id": correlation_id,
        },
    )


# Centralized exception handlers
@app.exception_handler(NotFoundException)
async def not_found_exception_handler(
    request: Request, exc: NotFoundException
) -> JSONResponse:
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "Not found")


@app.exception_handler(AlreadyExistsException)
async def already_exists_exception_handler(
    request: Request, exc: AlreadyExistsException
) -> JSONResponse:
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "Already exists")


@app.exception_handler(ValidationException)
async def validation_exception_handler(
    request: Request, exc: ValidationException
) -> JSONResponse:
    return _error_response(
        request, exc, status.HTTP_422_UNPROCESSABLE_CONTENT, "Validation error"
    )


@app.exception_handler(VisibilityDeniedException)
async def visibility_denied_exception_handler(
    request: Request, exc: VisibilityDeniedException
) -> JSONResponse:
    """Denied by the visibility rules; the reason code tells the client why."""
    return _error_response(
        request,
        exc,
        status.HTTP_403_FORBIDDEN,
        "Visibility denied",
        reason=exc.reason,
    )


@app.exception_handler(PermissionDeniedException)
async def permission_denied_exception_handler(
    request: Request, exc: PermissionDeniedException
) -> JSONResponse:
    return _error_response(
        request, exc, status.HTTP_403_FORBIDDEN, "Permission denied"
    )


@app.exception_handler(AuthenticationException)
async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
) -> JSONResponse:
    """Handle authentication exceptions with Sentry integration."""
    # Auth failures are security-relevant, capture in Sentry
    sentry_sdk.capture_exception(exc)
    return _error_response(
        request,
        exc,
        status.HTTP_401_UNAUTHORIZED,
        "Authentication failed",
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(BusinessRuleException)
async def business_rule_exception_handler(
    request: Request, exc: BusinessRuleException
) -> JSONResponse:
    return _error_response(
        request, exc, status.HTTP_400_BAD_REQUEST, "Business rule violation"
    )


@app.exception_handler(ConflictException)
async def conflict_exception_handler(
    request: Request, exc: ConflictException
) -> JSONResponse:
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "Conflict")


@app.exception_handler(UnavailableException)
async def unavailable_exception_handler(
    request: Request, exc: UnavailableException
) -> JSONResponse:
    """Storage failure; nothing was committed and the client may retry."""
    sentry_sdk.capture_exception(exc)
    return _error_response(
        request,
        exc,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Service unavailable",
        headers={"Retry-After": "1"},
    )


@app.exception_handler(OperationalError)
async def operational_error_handler(
    request: Request, exc: OperationalError
) -> JSONResponse:
    """Database unreachable or locked outside a service's own retry path."""
    sentry_sdk.capture_exception(exc)
    return _error_response(
        request,
        UnavailableException(),
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database unavailable",
        headers={"Retry-After": "1"},
    )


@app.exception_handler(DomainException)
async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Fallback for domain exceptions without a dedicated handler."""
    return _error_response(
        request, exc, status.HTTP_400_BAD_REQUEST, "Domain error"
    )


app.include_router(auth_router.router, prefix="/api")
app.include_router(content_router.router, prefix="/api")
app.include_router(engagement_router.router, prefix="/api")
app.include_router(comments_router.router, prefix="/api")
app.include_router(users_router.router, prefix="/api")
app.include_router(groups_router.router, prefix="/api")


@app.get("/")
def root() -> dict:
    return {"message": "Welcome to UniClub API"}


@app.get("/api/health", response_model=schemas.HealthStatus)
def health_check(db: Session = Depends(get_db)) -> schemas.HealthStatus:
    """Health check endpoint. Reports degraded when the database is unreachable."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {e!r}")
        database = "unavailable"
    return schemas.HealthStatus(
        status="healthy" if database == "ok" else "degraded", database=database
    )
