"""
Authentication schemas untuk CheckMate Auth.
Menangani validasi untuk login, login 2FA, dan refresh token.
"""

from datetime import datetime
from typing import Optional, Annotated

from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator, model_validator


class LoginRequest(BaseModel):
    """
    Login request schema.
    """
    email: EmailStr = Field(
        ...,
        description="User email address"
    )
    password: Annotated[str, Field(min_length=1)] = Field(
        ...,
        description="User password"
    )

    @field_validator('email')
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "email": "intern@example.com",
            "password": "SecurePassword123!"
        }
    })


class UserSummary(BaseModel):
    """Ringkasan identitas user dalam token response."""
    id: str
    email: str
    name: str
    role: str


class TokenResponse(BaseModel):
    """
    Token response schema untuk semua jalur login yang berhasil.
    """
    access_token: str = Field(
        ...,
        description="JWT access token"
    )
    refresh_token: str = Field(
        ...,
        description="JWT refresh token"
    )
    token_type: str = Field(
        "bearer",
        description="Token type (always 'bearer')"
    )
    expires_at: datetime = Field(
        ...,
        description="Access token (dan session) expiry"
    )
    session_id: str = Field(
        ...,
        description="Session ID"
    )
    user: UserSummary = Field(
        ...,
        description="Authenticated user"
    )
    remaining_backup_codes: Optional[int] = Field(
        None,
        description="Sisa backup code (hanya untuk login dengan backup code)"
    )

    @field_validator('session_id', mode='before')
    def stringify_session_id(cls, v) -> str:
        return str(v)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
            "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
            "token_type": "bearer",
            "expires_at": "2024-01-16T10:00:00Z",
            "session_id": "550e8400-e29b-41d4-a716-446655440000",
            "user": {
                "id": "550e8400-e29b-41d4-a716-446655440001",
                "email": "intern@example.com",
                "name": "Intern",
                "role": "intern"
            }
        }
    })


class TwoFactorRequiredResponse(BaseModel):
    """
    Response login saat 2FA aktif; belum ada token.
    """
    requires_2fa: bool = Field(
        True,
        description="Login harus diselesaikan lewat /auth/login/2fa"
    )
    otp_delivered: bool = Field(
        ...,
        description="Whether the OTP email was handed to SMTP"
    )
    message: str = Field(
        ...,
        description="Response message"
    )


class TwoFactorLoginRequest(BaseModel):
    """
    Two-factor login completion request. Isi salah satu: code atau backup_code.
    """
    email: EmailStr = Field(
        ...,
        description="User email address"
    )
    code: Optional[Annotated[str, Field(pattern=r'^\s*\d{6}\s*$')]] = Field(
        None,
        description="6-digit OTP from email"
    )
    backup_code: Optional[Annotated[str, Field(min_length=8, max_length=16)]] = Field(
        None,
        description="Backup code (XXXX-XXXX)"
    )

    @field_validator('email')
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()

    @model_validator(mode='after')
    def check_exactly_one_code(self) -> "TwoFactorLoginRequest":
        if bool(self.code) == bool(self.backup_code):
            raise ValueError("Provide either code or backup_code")
        return self

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "email": "intern@example.com",
            "code": "123456"
        }
    })


class RefreshTokenRequest(BaseModel):
    """
    Refresh token request schema.
    """
    refresh_token: str = Field(
        ...,
        description="JWT refresh token"
    )


class RefreshTokenResponse(BaseModel):
    """Access token baru; refresh token tidak dirotasi."""
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
