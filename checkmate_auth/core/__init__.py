"""
Core module untuk CheckMate Auth.
Berisi komponen inti aplikasi seperti konfigurasi, keamanan, exceptions, dan konstanta.
"""

from checkmate_auth.core.config import settings, get_settings, Settings
from checkmate_auth.core.exceptions import (
    CheckmateAuthException,
    InvalidCredentials,
    AccountLocked,
    TokenExpired,
    TokenRevoked,
    ChallengeExpiredOrInvalid,
    CredentialNotFound,
    ReplayDetected,
    SessionNotFound,
    InvalidRefreshToken,
    Unauthorized
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "CheckmateAuthException",
    "InvalidCredentials",
    "AccountLocked",
    "TokenExpired",
    "TokenRevoked",
    "ChallengeExpiredOrInvalid",
    "CredentialNotFound",
    "ReplayDetected",
    "SessionNotFound",
    "InvalidRefreshToken",
    "Unauthorized"
]
