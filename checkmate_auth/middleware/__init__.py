"""
Middleware package untuk CheckMate Auth.
Berisi middleware untuk logging request dan error handling.
"""

from checkmate_auth.middleware.logging import LoggingMiddleware
from checkmate_auth.middleware.error_handler import (
    ErrorHandlerMiddleware,
    checkmate_exception_handler,
    validation_exception_handler,
    http_exception_handler
)

__all__ = [
    "LoggingMiddleware",
    "ErrorHandlerMiddleware",
    "checkmate_exception_handler",
    "validation_exception_handler",
    "http_exception_handler"
]
