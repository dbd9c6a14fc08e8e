"""
Global error handling untuk CheckMate Auth.
Mengubah semua exception menjadi response error yang konsisten:

    {"error": {"kind": ..., "message": ..., "details": {...}, "request_id": ...}}
"""

from typing import Callable, Optional, Dict, Any
import logging

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from checkmate_auth.core.config import settings
from checkmate_auth.core.exceptions import CheckmateAuthException
from checkmate_auth.schemas.response import ErrorDetail, ErrorResponse


# Configure logger
logger = logging.getLogger("checkmate.error")


def create_error_response(
    request: Request,
    status_code: int,
    kind: str,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    """
    Create standardized error response.

    Args:
        request: Request object
        status_code: HTTP status code
        kind: Error kind yang stabil untuk client
        message: Error message
        details: Additional error details

    Returns:
        JSON error response
    """
    headers = {
        "X-Content-Type-Options": "nosniff",
        "Cache-Control": "no-store"
    }
    retry_after = (details or {}).get("retry_after")
    if retry_after is not None:
        headers["Retry-After"] = str(retry_after)
    if status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"

    body = ErrorResponse(
        error=ErrorDetail(
            kind=kind,
            message=message,
            details=details or {},
            request_id=getattr(request.state, "request_id", None)
        )
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers
    )


def log_error(request: Request, error: Exception, status_code: int) -> None:
    """
    Log error with context.

    Args:
        request: Request object
        error: Exception
        status_code: HTTP status code
    """
    log_entry = {
        "request_id": getattr(request.state, "request_id", "unknown"),
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "error_type": type(error).__name__,
        "error_message": str(error),
        "client_ip": request.client.host if request.client else "unknown"
    }

    # Log based on severity
    if status_code >= 500:
        logger.error(log_entry, exc_info=error)
    else:
        logger.warning(log_entry)


async def checkmate_exception_handler(request: Request, exc: CheckmateAuthException) -> JSONResponse:
    """Exception handler untuk semua CheckmateAuthException."""
    log_error(request, exc, exc.status_code)
    return create_error_response(request, exc.status_code, exc.kind, exc.message, exc.details)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/query tidak valid."""
    errors = [
        {
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        }
        for error in exc.errors()
    ]
    log_error(request, exc, 422)
    return create_error_response(
        request, 422, "ValidationError", "Validation failed", {"validation_errors": errors}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP exception bawaan framework (404 route, 405 method, dst)."""
    log_error(request, exc, exc.status_code)
    return create_error_response(request, exc.status_code, "HTTPError", str(exc.detail))


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handler middleware untuk exception yang lolos dari handler.
    Detail internal disembunyikan kecuali mode debug.
    """

    def __init__(self, app: ASGIApp, debug: Optional[bool] = None):
        """
        Initialize error handler middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Debug mode (shows error messages)
        """
        super().__init__(app)
        self.debug = debug if debug is not None else settings.DEBUG

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request dengan error handling.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint

        Returns:
            Response atau error response
        """
        try:
            return await call_next(request)
        except CheckmateAuthException as exc:
            return await checkmate_exception_handler(request, exc)
        except Exception as exc:
            log_error(request, exc, 500)

            # Hide internal error details in production
            message = str(exc) if self.debug else "An internal server error occurred"
            return create_error_response(request, 500, "InternalServerError", message)
