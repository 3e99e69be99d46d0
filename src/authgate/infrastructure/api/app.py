"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with its routes, exception
handlers, middleware and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from authgate.core.config import get_settings
from authgate.core.logging import configure_logging, get_logger
from authgate.infrastructure.api.dependencies import SessionRequiredError
from authgate.infrastructure.persistence.database import (
    close_database,
    init_database,
)
from authgate.infrastructure.persistence.stores import InMemoryEmailMfaCodeStore
from authgate.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging, initializes the database and seeds the
    configured OAuth clients on startup, and closes the database on
    shutdown.
    """
    settings = get_settings()

    configure_logging(settings)
    logger.info(
        "Starting AuthGate",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        email_provider=settings.email_provider,
        email_code_store=settings.email_code_store,
    )

    try:
        await init_database()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    yield

    logger.info("Shutting down AuthGate")
    await close_database()
    logger.info("Database connection closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="OAuth 2.0 authorization server with email-code sign-in",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.email_service = EmailService()
    if settings.email_code_store == "memory":
        app.state.email_code_store = InMemoryEmailMfaCodeStore()

    register_health_check(app)
    register_routes(app)
    register_exception_handlers(app)
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints."""

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not check
        database connectivity.
        """
        return {
            "status": "healthy",
            "service": "AuthGate",
            "version": get_settings().app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check endpoint, including database connectivity."""
        from authgate.infrastructure.persistence.database import get_db_manager

        db = get_db_manager()
        db_healthy = await db.check_connection()

        if db_healthy:
            return {
                "status": "ready",
                "service": "AuthGate",
                "version": get_settings().app_version,
                "database": "connected",
            }
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": "AuthGate",
                "database": "disconnected",
            },
        )

    @app.get("/live", tags=["health"])
    async def liveness_check():
        """Liveness check endpoint."""
        return {
            "status": "alive",
            "service": "AuthGate",
            "version": get_settings().app_version,
        }


def register_routes(app: FastAPI) -> None:
    """Register API routes under the configured prefix."""
    from authgate.infrastructure.api.routes import (
        auth_router,
        email_change_router,
        oauth_router,
        profile_router,
    )

    settings = get_settings()

    app.include_router(oauth_router, prefix=settings.api_prefix, tags=["oauth"])
    app.include_router(auth_router, prefix=settings.api_prefix, tags=["auth"])
    app.include_router(profile_router, prefix=settings.api_prefix, tags=["profile"])
    app.include_router(
        email_change_router, prefix=settings.api_prefix, tags=["email-change"]
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(SessionRequiredError)
    async def session_required_handler(request, exc):
        """Reject requests to session-protected endpoints without a session."""
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if get_settings().debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware."""

    @app.middleware("http")
    async def logging_middleware(request, call_next):
        """Middleware to log all requests and add correlation ID."""
        import uuid

        from authgate.core.logging import bind_correlation_id, clear_context

        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
            correlation_id=correlation_id,
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            # Prevent context leaking into the next request
            clear_context()


# Create the application instance
app = create_app()
