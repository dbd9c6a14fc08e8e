"""
User schemas untuk CheckMate Auth.
Menangani validasi untuk pembuatan akun dan response user.
"""

from datetime import datetime
from typing import Optional, Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator

from checkmate_auth.core.config import settings
from checkmate_auth.core.constants import UserRole


class UserCreate(BaseModel):
    """
    User creation schema (admin only).
    """
    email: EmailStr = Field(
        ...,
        description="User email address"
    )
    name: Annotated[str, Field(min_length=1, max_length=255)] = Field(
        ...,
        description="Display name"
    )
    password: str = Field(
        ...,
        description="Initial password"
    )
    role: UserRole = Field(
        UserRole.INTERN,
        description="admin, supervisor, atau intern"
    )

    @field_validator('email')
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator('password')
    def validate_password_length(cls, v: str) -> str:
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")
        return v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "email": "intern@example.com",
            "name": "New Intern",
            "password": "SecurePassword123!",
            "role": "intern"
        }
    })


class UserResponse(BaseModel):
    """
    User response schema untuk API responses.
    """
    u_id: UUID = Field(..., description="User ID")
    u_email: str = Field(..., description="User email")
    u_name: str = Field(..., description="Display name")
    u_role: str = Field(..., description="Role")
    u_is_active: bool = Field(..., description="Whether user is active")
    u_last_login_at: Optional[datetime] = Field(None, description="Last login timestamp")
    created_at: datetime = Field(..., description="Account creation timestamp")

    model_config = ConfigDict(from_attributes=True)
