"""
Main application entry point untuk CheckMate Auth.
Mengkonfigurasi FastAPI application dengan middleware, routers, dan exception handlers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from checkmate_auth.api.dependencies.database import create_redis_client
from checkmate_auth.api.v1 import auth, health, sessions, two_factor, users, webauthn
from checkmate_auth.core.config import settings
from checkmate_auth.core.exceptions import CheckmateAuthException
from checkmate_auth.db.session import SessionLocal, init_db, close_db
from checkmate_auth.middleware import (
    ErrorHandlerMiddleware,
    LoggingMiddleware,
    checkmate_exception_handler,
    validation_exception_handler,
    http_exception_handler
)
from checkmate_auth.services.audit import AuditService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")

    # Pending audit writes harus selesai sebelum engine ditutup
    await app.state.audit_service.drain()
    await app.state.redis.aclose()
    await close_db()

    logger.info("Application shutdown complete")


def create_application() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Authentication and session-security API for CheckMate Attendance",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,  # Disable in production
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    app.state.audit_service = AuditService(SessionLocal)
    app.state.redis = create_redis_client(settings)

    # Add middleware (order matters - executed in reverse order)

    # 1. Error Handler (catches everything the exception handlers don't)
    app.add_middleware(
        ErrorHandlerMiddleware,
        debug=settings.DEBUG
    )

    # 2. Logging (outermost, sets request_id)
    app.add_middleware(
        LoggingMiddleware,
        exclude_paths=[f"{settings.API_V1_STR}/health"]
    )

    # Exception handlers
    app.add_exception_handler(CheckmateAuthException, checkmate_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Include API routers
    app.include_router(health.router, prefix=settings.API_V1_STR)
    app.include_router(auth.router, prefix=settings.API_V1_STR)
    app.include_router(webauthn.router, prefix=settings.API_V1_STR)
    app.include_router(two_factor.router, prefix=settings.API_V1_STR)
    app.include_router(sessions.router, prefix=settings.API_V1_STR)
    app.include_router(users.router, prefix=settings.API_V1_STR)

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "operational",
            "docs": "/docs" if settings.DEBUG else None
        }

    return app


# Create application instance
app = create_application()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "checkmate_auth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
