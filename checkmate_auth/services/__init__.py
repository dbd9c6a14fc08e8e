"""
Services module untuk CheckMate Auth.
Berisi business logic layer yang terpisah dari presentation dan data layers.
"""

from checkmate_auth.services.audit import AuditService
from checkmate_auth.services.auth import AuthService
from checkmate_auth.services.credentials import CredentialService
from checkmate_auth.services.email import EmailService
from checkmate_auth.services.revocation import RevocationService
from checkmate_auth.services.session import SessionService
from checkmate_auth.services.token import TokenService
from checkmate_auth.services.two_factor import TwoFactorService
from checkmate_auth.services.user import UserService
from checkmate_auth.services.webauthn import WebAuthnService

__all__ = [
    "AuditService",
    "AuthService",
    "CredentialService",
    "EmailService",
    "RevocationService",
    "SessionService",
    "TokenService",
    "TwoFactorService",
    "UserService",
    "WebAuthnService"
]
