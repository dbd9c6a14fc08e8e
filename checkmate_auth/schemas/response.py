"""
Generic response schemas untuk CheckMate Auth.
Menangani response format yang konsisten.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field


# Type variable untuk generic responses
T = TypeVar('T')


class MessageResponse(BaseModel):
    """
    Simple message response schema.
    """
    message: str = Field(
        ...,
        description="Response message"
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional details"
    )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "message": "Operation completed successfully",
            "details": {
                "terminated": 1
            }
        }
    })


class ErrorDetail(BaseModel):
    """Isi field `error` pada setiap response gagal."""
    kind: str = Field(..., description="Error kind yang stabil untuk client")
    message: str = Field(..., description="Human-readable message")
    details: Dict[str, Any] = Field(default_factory=dict, description="Data tambahan, misal retry_after")
    request_id: Optional[str] = Field(None, description="X-Request-ID dari request")


class ErrorResponse(BaseModel):
    """
    Error response schema dengan struktur konsisten.
    """
    error: ErrorDetail = Field(
        ...,
        description="Error details (kind, message, details, request_id)"
    )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": {
                "kind": "InvalidCredentials",
                "message": "Invalid email or password",
                "details": {
                    "remaining_attempts": 4
                },
                "request_id": "550e8400-e29b-41d4-a716-446655440000"
            }
        }
    })


def error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """Deklarasi `responses=` untuk OpenAPI; semua error memakai ErrorResponse."""
    return {code: {"model": ErrorResponse} for code in status_codes}


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Generic paginated response schema.
    """
    items: List[T] = Field(
        ...,
        description="List of items"
    )
    total: int = Field(
        ...,
        description="Total number of items"
    )
    page: int = Field(
        ...,
        description="Current page"
    )
    per_page: int = Field(
        ...,
        description="Items per page"
    )
    pages: int = Field(
        ...,
        description="Total number of pages"
    )


class HealthCheckResponse(BaseModel):
    """
    Health check response schema.
    """
    status: str = Field(
        ...,
        description="Health status"
    )
    timestamp: datetime = Field(
        ...,
        description="Check timestamp"
    )
    version: str = Field(
        ...,
        description="API version"
    )
    service: str = Field(
        ...,
        description="Service name"
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional health details"
    )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "status": "healthy",
            "timestamp": "2024-01-15T10:00:00Z",
            "version": "1.0.0",
            "service": "CheckMate Auth",
            "details": {
                "database": "connected",
                "redis": "connected"
            }
        }
    })
