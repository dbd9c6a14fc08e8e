"""
Schemas module untuk CheckMate Auth.
Berisi semua Pydantic schemas untuk request/response validation.
"""

from checkmate_auth.schemas.auth import (
    LoginRequest,
    UserSummary,
    TokenResponse,
    TwoFactorRequiredResponse,
    TwoFactorLoginRequest,
    RefreshTokenRequest,
    RefreshTokenResponse
)
from checkmate_auth.schemas.session import SessionResponse, SessionListResponse
from checkmate_auth.schemas.two_factor import (
    TwoFactorStatusResponse,
    BackupCodesResponse,
    TwoFactorDisableRequest
)
from checkmate_auth.schemas.user import UserCreate, UserResponse
from checkmate_auth.schemas.webauthn import (
    RegistrationVerifyRequest,
    AuthenticationOptionsRequest,
    AuthenticationVerifyRequest,
    CredentialRenameRequest,
    CredentialResponse
)
from checkmate_auth.schemas.response import (
    MessageResponse,
    ErrorDetail,
    ErrorResponse,
    error_responses,
    PaginatedResponse,
    HealthCheckResponse
)

__all__ = [
    # Auth schemas
    "LoginRequest",
    "UserSummary",
    "TokenResponse",
    "TwoFactorRequiredResponse",
    "TwoFactorLoginRequest",
    "RefreshTokenRequest",
    "RefreshTokenResponse",

    # Session schemas
    "SessionResponse",
    "SessionListResponse",

    # Two-factor schemas
    "TwoFactorStatusResponse",
    "BackupCodesResponse",
    "TwoFactorDisableRequest",

    # User schemas
    "UserCreate",
    "UserResponse",

    # WebAuthn schemas
    "RegistrationVerifyRequest",
    "AuthenticationOptionsRequest",
    "AuthenticationVerifyRequest",
    "CredentialRenameRequest",
    "CredentialResponse",

    # Response schemas
    "MessageResponse",
    "ErrorDetail",
    "ErrorResponse",
    "error_responses",
    "PaginatedResponse",
    "HealthCheckResponse"
]
