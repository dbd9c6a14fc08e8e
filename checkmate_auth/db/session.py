"""
Database session management untuk CheckMate Auth.
Menggunakan SQLAlchemy dengan async support.
"""

from typing import AsyncGenerator, Dict, Any
import logging
import time
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.pool import StaticPool
from sqlalchemy import text
from sqlalchemy.engine import make_url

from checkmate_auth.core.config import settings

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    database = make_url(url).database
    return not database or database == ":memory:" or "mode=memory" in url


def create_engine(database_url: str = None) -> AsyncEngine:
    """
    Create async SQLAlchemy engine dengan konfigurasi optimal.

    Args:
        database_url: Override URL (default dari settings)

    Returns:
        Configured AsyncEngine
    """
    url = database_url or settings.DATABASE_URL

    engine_args: Dict[str, Any] = {
        "echo": settings.DEBUG,
    }

    if url.startswith("sqlite") and _is_memory_sqlite(url):
        # In-memory SQLite harus berbagi satu koneksi
        engine_args["poolclass"] = StaticPool
        engine_args["connect_args"] = {"check_same_thread": False}
    elif url.startswith("sqlite"):
        engine_args["connect_args"] = {"timeout": 30}
    else:
        engine_args["pool_pre_ping"] = settings.DB_POOL_PRE_PING
        engine_args["pool_size"] = settings.DB_POOL_SIZE
        engine_args["max_overflow"] = settings.DB_MAX_OVERFLOW
        engine_args["pool_timeout"] = 30
        engine_args["pool_recycle"] = 3600
        engine_args["connect_args"] = {
            "server_settings": {
                "application_name": settings.APP_NAME,
            },
            "command_timeout": 60,
        }

    return create_async_engine(url, **engine_args)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    """Session factory dengan setting yang sama di app, script, dan test."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
        autoflush=False,  # Manual flush for better control
    )


# Create global engine instance
engine = create_engine()

# Create session factory
SessionLocal = create_session_factory(engine)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager untuk database session.
    Useful untuk non-FastAPI contexts (scripts, maintenance jobs).

    Example:
        async with get_db_context() as db:
            # Use db session
            pass
    """
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables(bind: AsyncEngine = None) -> None:
    """Create semua tabel dari metadata model."""
    from checkmate_auth.db.base import Base
    import checkmate_auth.models  # noqa: F401  register models

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def init_db() -> None:
    """
    Initialize database.
    - Test connection
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


async def close_db() -> None:
    """
    Close database connections.
    Should be called on application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")


async def check_database_health(session: AsyncSession) -> Dict[str, Any]:
    """
    Check database health dan return metrics.

    Args:
        session: Database session yang dipakai untuk query

    Returns:
        Dictionary dengan health metrics
    """
    health_info: Dict[str, Any] = {
        "connected": False,
        "response_time_ms": None,
        "error": None
    }

    try:
        start_time = time.time()
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        health_info["connected"] = True
        health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
    except Exception as e:
        health_info["error"] = str(e)
        logger.error(f"Database health check failed: {e}")

    return health_info
