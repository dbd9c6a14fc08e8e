"""
Request logging middleware untuk CheckMate Auth.
Memberi setiap request sebuah ID dan mencatat method, path, status, dan durasi.
"""

from typing import Callable, Optional, Dict, Any, List
import time
import json
import uuid
import logging

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


# Configure logger
logger = logging.getLogger("checkmate.access")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/response logging middleware.

    Features:
    - Request ID generation (X-Request-ID, diteruskan jika client mengirimnya)
    - Request/response timing
    - Structured JSON logging
    """

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: Optional[List[str]] = None
    ):
        """
        Initialize logging middleware.

        Args:
            app: FastAPI/Starlette application
            exclude_paths: Path prefixes yang tidak di-log (request ID tetap dibuat)
        """
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    def should_log_path(self, path: str) -> bool:
        return not any(path.startswith(excluded) for excluded in self.exclude_paths)

    def create_log_entry(
        self,
        request: Request,
        response: Optional[Response],
        duration_ms: float
    ) -> Dict[str, Any]:
        """
        Create structured log entry.

        Args:
            request: Incoming request
            response: Response (None jika handler raise)
            duration_ms: Request duration in milliseconds

        Returns:
            Log entry dictionary
        """
        return {
            "request_id": getattr(request.state, "request_id", "unknown"),
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", "unknown"),
            "status_code": response.status_code if response else 500,
            "duration_ms": round(duration_ms, 2)
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request with logging.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint

        Returns:
            Response
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        response = None

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            for header, value in getattr(request.state, "rate_limit_headers", {}).items():
                response.headers[header] = value
            return response

        finally:
            if self.should_log_path(request.url.path):
                log_entry = self.create_log_entry(
                    request, response, (time.time() - start_time) * 1000
                )
                status_code = log_entry["status_code"]
                if status_code >= 500:
                    logger.error(json.dumps(log_entry))
                elif status_code >= 400:
                    logger.warning(json.dumps(log_entry))
                else:
                    logger.info(json.dumps(log_entry))
