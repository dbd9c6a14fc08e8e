"""
Database dan Redis dependencies untuk FastAPI.

Session database dibuat per request. Client Redis (untuk rate limit login)
dibuat sekali di `create_application` dan disimpan di `app.state.redis`,
sama seperti audit service.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
import redis.asyncio as redis

from checkmate_auth.core.config import Settings
from checkmate_auth.db.session import SessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Session database per request; ditutup setelah response."""
    async with SessionLocal() as session:
        yield session


def create_redis_client(config: Settings) -> redis.Redis:
    """Client dengan pool sendiri; koneksi baru dibuka saat pertama dipakai."""
    return redis.Redis.from_url(
        config.REDIS_URL,
        max_connections=config.REDIS_POOL_SIZE,
        decode_responses=True
    )


async def get_redis(request: Request) -> AsyncGenerator[redis.Redis, None]:
    """Client Redis milik aplikasi."""
    yield request.app.state.redis
