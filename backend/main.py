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
    CORRELATION_HEADER,
    current_or_new_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry
from helpers.rate_limiter import limiter
from helpers.security_headers import SecurityHeadersMiddleware
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    ConflictException,
    DomainException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from repositories.database import Base, engine
from routers import (
    admin_router,
    announcements_router,
    auth_router,
    comments_router,
    posts_router,
    tags_router,
    users_router,
)

# Initialize Sentry BEFORE app creation
init_sentry()

# Configure logging with Loguru
configure_logging(settings.ENVIRONMENT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Optionally create tables when `AUTO_CREATE_DB` is enabled.
    - Start the nightly maintenance scheduler outside of tests.
    """
    if settings.AUTO_CREATE_DB:
        logger.info(
            "AUTO_CREATE_DB enabled; creating database tables via SQLAlchemy create_all()"
        )
        Base.metadata.create_all(bind=engine)
    else:
        logger.info("AUTO_CREATE_DB disabled; skipping automatic create_all()")

    from core.scheduler import setup_scheduler, shutdown_scheduler

    if settings.scheduler_active:
        setup_scheduler()

    try:
        yield
    finally:
        if settings.scheduler_active:
            shutdown_scheduler()


app = FastAPI(title="Forum API", lifespan=lifespan)

# Attach rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        set_correlation_id(correlation_id)
        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with performance monitoring."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        logger.info(
            f"{request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )
        if duration > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


# Middleware runs in reverse order of registration
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _domain_error(
    request: Request, exc: DomainException, status_code: int, label: str
) -> JSONResponse:
    """Log a rejected request and render the error envelope."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    logger.warning(
        f"{label}: {exc.message}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": exc.message,
            "correlation_id": exc.correlation_id,
            **exc.extra(),
        },
    )


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = current_or_new_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # repr() keeps braces in the message away from loguru's formatter
    logger.exception(
        f"Unhandled exception: {exc!r}",
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Internal server error",
            "correlation_id": correlation_id,
        },
    )


# Handlers resolve by exception MRO; DomainException covers the rest.
_DOMAIN_STATUS: list[tuple[type[DomainException], int, str]] = [
    (NotFoundException, status.HTTP_404_NOT_FOUND, "Not found"),
    (ValidationException, status.HTTP_400_BAD_REQUEST, "Validation error"),
    (PermissionDeniedException, status.HTTP_403_FORBIDDEN, "Permission denied"),
    (AuthenticationException, status.HTTP_401_UNAUTHORIZED, "Authentication failed"),
    (ConflictException, status.HTTP_409_CONFLICT, "Conflict"),
    (DomainException, status.HTTP_400_BAD_REQUEST, "Domain error"),
]


def _register_domain_handler(
    exc_class: type[DomainException], status_code: int, label: str
) -> None:
    async def handler(request: Request, exc: DomainException) -> JSONResponse:
        response = _domain_error(request, exc, status_code, label)
        if isinstance(exc, AuthenticationException):
            response.headers["WWW-Authenticate"] = "Bearer"
        return response

    app.add_exception_handler(exc_class, handler)  # type: ignore[arg-type]


for _exc_class, _status_code, _label in _DOMAIN_STATUS:
    _register_domain_handler(_exc_class, _status_code, _label)


app.include_router(auth_router.router, prefix="/api")
app.include_router(posts_router.router, prefix="/api")
app.include_router(comments_router.router, prefix="/api")
app.include_router(users_router.router, prefix="/api")
app.include_router(tags_router.router, prefix="/api")
app.include_router(announcements_router.router, prefix="/api")
app.include_router(admin_router.router, prefix="/api")


@app.get("/")
def root() -> dict:
    return {"message": "Welcome to the Forum API"}


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
