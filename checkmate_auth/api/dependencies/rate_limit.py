"""
Rate limiting dependencies untuk FastAPI.
Menggunakan Redis untuk distributed rate limiting.
"""

from typing import Optional, Callable, Annotated
from datetime import datetime, timezone
import logging

from fastapi import Depends, Request
import redis.asyncio as redis

from checkmate_auth.api.dependencies.database import get_redis
from checkmate_auth.core.config import settings
from checkmate_auth.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class RateLimitDependency:
    """
    Rate limiting dependency menggunakan sliding window algorithm.
    """

    def __init__(
        self,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        namespace: str = "api",
        key_func: Optional[Callable[[Request], str]] = None
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum requests allowed dalam window (default dari settings)
            window_seconds: Time window dalam seconds (default dari settings)
            namespace: Namespace untuk Redis keys
            key_func: Custom function untuk generate rate limit key
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.namespace = namespace
        self.key_func = key_func or self._default_key_func

    def _default_key_func(self, request: Request) -> str:
        """
        Default key function menggunakan client IP.

        Args:
            request: FastAPI request

        Returns:
            Rate limit key
        """
        client_ip = request.client.host if request.client else "unknown"
        return f"ratelimit:{self.namespace}:{client_ip}"

    async def __call__(
        self,
        request: Request,
        redis_client: Annotated[redis.Redis, Depends(get_redis)]
    ) -> None:
        """
        Check rate limit untuk request.

        Args:
            request: FastAPI request
            redis_client: Redis connection

        Raises:
            RateLimitError: Jika rate limit exceeded
        """
        max_requests = self.max_requests or settings.LOGIN_RATE_LIMIT
        window_seconds = self.window_seconds or settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS

        key = self.key_func(request)
        now = datetime.now(timezone.utc).timestamp()
        window_start = now - window_seconds

        # Remove old entries
        await redis_client.zremrangebyscore(key, 0, window_start)

        # Count requests in window
        request_count = await redis_client.zcard(key)

        if request_count >= max_requests:
            oldest_request = await redis_client.zrange(key, 0, 0, withscores=True)
            if oldest_request:
                retry_after = max(1, int(oldest_request[0][1] + window_seconds - now))
            else:
                retry_after = window_seconds

            logger.warning(f"Rate limit exceeded for {key}")
            raise RateLimitError(retry_after=retry_after)

        # Add current request
        await redis_client.zadd(key, {str(now): now})
        await redis_client.expire(key, window_seconds)

        request.state.rate_limit_headers = {
            "X-RateLimit-Limit": str(max_requests),
            "X-RateLimit-Remaining": str(max_requests - request_count - 1),
            "X-RateLimit-Reset": str(int(now + window_seconds))
        }


login_rate_limit = RateLimitDependency(namespace="login")
