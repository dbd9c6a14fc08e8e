"""
CheckMate Auth - authentication and session-security core for CheckMate Attendance.

This package provides:
- Password login with temporary account lockout
- Email OTP two-factor authentication with single-use backup codes
- WebAuthn (FIDO2) biometric registration and login
- JWT access/refresh tokens with server-side sessions
- Token revocation and concurrent-session limits
- Audit logging

Built with FastAPI, SQLAlchemy, and PostgreSQL.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
