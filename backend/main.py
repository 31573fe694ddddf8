# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from core.correlation import (
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry
from helpers.rate_limiter import limiter
from models.config import settings
from models.exceptions import (
    AlreadyExistsException,
    AuthenticationException,
    BusinessRuleException,
    DomainException,
    NotFoundException,
    PermissionDeniedException,
    UserBannedException,
    ValidationException,
)
from repositories.database import Base, engine
from routers import (
    auth_router,
    library_router,
    moderation_router,
    reports_router,
    users_router,
)

# Initialize Sentry BEFORE app creation
init_sentry()

# Configure logging with Loguru
configure_logging(settings.ENVIRONMENT, settings.LOG_DIR)


def check_schema_version() -> None:
    """Verify database schema version matches expected migration.

    This helps catch cases where the application code expects a newer schema
    than what's deployed in the database.
    """
    from sqlalchemy import text

    from repositories.database import SessionLocal

    # Expected latest migration revision (update when adding new migrations)
    EXPECTED_REVISION = "0002_add_reports"

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
    except Exception as e:
        logger.warning(f"Could not verify schema version: {e}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Verify database schema version matches expected migration.
    - Optionally create tables when `AUTO_CREATE_DB` is enabled (development).
    - Start the moderation maintenance scheduler when `SCHEDULER_ENABLED`.
    """
    from core.scheduler import setup_scheduler, shutdown_scheduler

    check_schema_version()

    if settings.AUTO_CREATE_DB:
        logger.info(
            "AUTO_CREATE_DB enabled; creating database tables via SQLAlchemy create_all()"
        )
        Base.metadata.create_all(bind=engine)
    else:
        logger.info("AUTO_CREATE_DB disabled; skipping automatic create_all()")

    if settings.SCHEDULER_ENABLED:
        setup_scheduler()

    try:
        yield
    finally:
        if settings.SCHEDULER_ENABLED:
            shutdown_scheduler()


app = FastAPI(title="ReadTrack API", lifespan=lifespan)

# Attach rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request with correlation ID tracking."""
        # Check for incoming correlation ID (from frontend)
        correlation_id = (
            request.headers.get("X-Correlation-ID") or generate_correlation_id()
        )
        set_correlation_id(correlation_id)

        # Add to Sentry context
        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)

        # Include in response headers
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


# Middleware runs in reverse order of registration
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# Configure CORS from environment settings
# In development, allow all origins for mobile/network testing
cors_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True if settings.ENVIRONMENT != "development" else False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _domain_error_response(
    exc: DomainException, status_code: int, **extra: object
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            **extra,
            "correlation_id": exc.correlation_id,
        },
    )


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    # Always capture 5xx errors in Sentry
    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # exc goes in as a format argument; braces in its text are not placeholders
    logger.bind(
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    ).opt(exception=exc).error("Unhandled exception: {!r}", exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "correlation_id": correlation_id,
        },
    )


def _log_domain_exception(request: Request, exc: DomainException, label: str) -> None:
    logger.bind(
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    ).warning("{}: {}", label, exc.message)


# Centralized exception handlers
@app.exception_handler(NotFoundException)
async def not_found_exception_handler(
    request: Request, exc: NotFoundException
) -> JSONResponse:
    """Handle not found exceptions with Sentry integration."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    _log_domain_exception(request, exc, "Not found")

    return _domain_error_response(exc, status.HTTP_404_NOT_FOUND)


@app.exception_handler(AlreadyExistsException)
async def already_exists_exception_handler(
    request: Request, exc: AlreadyExistsException
) -> JSONResponse:
    """Handle already exists exceptions with Sentry integration."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    _log_domain_exception(request, exc, "Already exists")

    return _domain_error_response(exc, status.HTTP_409_CONFLICT)


@app.exception_handler(ValidationException)
async def validation_exception_handler(
    request: Request, exc: ValidationException
) -> JSONResponse:
    """Handle validation exceptions with Sentry integration."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    _log_domain_exception(request, exc, "Validation error")

    return _domain_error_response(exc, status.HTTP_422_UNPROCESSABLE_CONTENT)


@app.exception_handler(PermissionDeniedException)
async def permission_denied_exception_handler(
    request: Request, exc: PermissionDeniedException
) -> JSONResponse:
    """Handle permission denied exceptions with Sentry integration."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    _log_domain_exception(request, exc, "Permission denied")

    return _domain_error_response(exc, status.HTTP_403_FORBIDDEN)


@app.exception_handler(AuthenticationException)
async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
) -> JSONResponse:
    """Handle authentication exceptions with Sentry integration."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    # Auth failures are security-relevant, capture in Sentry
    sentry_sdk.capture_exception(exc)

    _log_domain_exception(request, exc, "Authentication failed")

    response = _domain_error_response(exc, status.HTTP_401_UNAUTHORIZED)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(BusinessRuleException)
async def business_rule_exception_handler(
    request: Request, exc: BusinessRuleException
) -> JSONResponse:
    """Handle business rule exceptions with Sentry integration."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    _log_domain_exception(request, exc, "Business rule violation")

    return _domain_error_response(exc, status.HTTP_400_BAD_REQUEST)


@app.exception_handler(UserBannedException)
async def user_banned_handler(
    request: Request, exc: UserBannedException
) -> JSONResponse:
    """Handle user banned exception."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    _log_domain_exception(request, exc, "User banned")
    return _domain_error_response(
        exc,
        status.HTTP_403_FORBIDDEN,
        reason=exc.reason,
        expires_at=exc.expires_at.isoformat() if exc.expires_at else None,
        is_permanent=exc.is_permanent,
        time_remaining=exc.time_remaining,
    )


@app.exception_handler(DomainException)
async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Handle generic domain exceptions with Sentry integration."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    # Capture unexpected domain exceptions
    sentry_sdk.capture_exception(exc)

    _log_domain_exception(request, exc, "Domain exception")

    return _domain_error_response(
        exc, status.HTTP_400_BAD_REQUEST, type=exc.__class__.__name__
    )


# Include routers
app.include_router(auth_router.router, prefix="/api")
app.include_router(library_router.router, prefix="/api")
app.include_router(users_router.router, prefix="/api")
app.include_router(moderation_router.router, prefix="/api")
app.include_router(reports_router.router, prefix="/api")


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
