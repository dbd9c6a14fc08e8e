"""
Models module untuk CheckMate Auth.
Berisi semua SQLAlchemy models untuk database.
"""

from checkmate_auth.models.user import User
from checkmate_auth.models.session import UserSession
from checkmate_auth.models.token import RevokedToken
from checkmate_auth.models.two_factor import TwoFactorSetting, BackupCode
from checkmate_auth.models.webauthn import WebAuthnCredential, WebAuthnChallenge
from checkmate_auth.models.audit import AuditLog

__all__ = [
    "User",
    "UserSession",
    "RevokedToken",
    "TwoFactorSetting",
    "BackupCode",
    "WebAuthnCredential",
    "WebAuthnChallenge",
    "AuditLog"
]
