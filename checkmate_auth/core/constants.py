"""
Konstanta yang digunakan di seluruh aplikasi CheckMate Auth.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role user dalam sistem."""
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    INTERN = "intern"


class TokenType(str, Enum):
    """Marker `type` di dalam JWT."""
    ACCESS = "access"
    REFRESH = "refresh"


class LogoutReason(str, Enum):
    """Alasan session dihentikan."""
    MANUAL = "manual"
    FORCED = "forced"
    EXPIRED = "expired"
    INACTIVITY = "inactivity"
    SECURITY = "security"


class RevocationReason(str, Enum):
    """Alasan token masuk revocation list."""
    LOGOUT = "logout"
    PASSWORD_CHANGE = "password_change"
    SECURITY_BREACH = "security_breach"
    ADMIN_ACTION = "admin_action"
    EXPIRED = "expired"


class TwoFactorMethod(str, Enum):
    """Metode two-factor authentication."""
    EMAIL = "email"


class ChallengePurpose(str, Enum):
    """Tujuan WebAuthn challenge."""
    REGISTRATION = "registration"
    AUTHENTICATION = "authentication"


class AuditAction(str, Enum):
    """Aksi-aksi yang di-log dalam audit trail."""
    # Authentication actions
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    TOKEN_REFRESH = "TOKEN_REFRESH"

    # Account actions
    ACCOUNT_CREATED = "ACCOUNT_CREATED"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"

    # Two-factor actions
    TWO_FACTOR_ENABLED = "TWO_FACTOR_ENABLED"
    TWO_FACTOR_DISABLED = "TWO_FACTOR_DISABLED"
    TWO_FACTOR_VERIFIED = "TWO_FACTOR_VERIFIED"
    TWO_FACTOR_FAILED = "TWO_FACTOR_FAILED"
    BACKUP_CODE_USED = "BACKUP_CODE_USED"
    BACKUP_CODES_REGENERATED = "BACKUP_CODES_REGENERATED"

    # WebAuthn actions
    WEBAUTHN_REGISTERED = "WEBAUTHN_REGISTERED"
    WEBAUTHN_REMOVED = "WEBAUTHN_REMOVED"
    WEBAUTHN_REPLAY_DETECTED = "WEBAUTHN_REPLAY_DETECTED"

    # Session actions
    SESSION_CREATED = "SESSION_CREATED"
    SESSION_TERMINATED = "SESSION_TERMINATED"
    SESSION_EVICTED = "SESSION_EVICTED"
    ALL_SESSIONS_TERMINATED = "ALL_SESSIONS_TERMINATED"
    FORCE_LOGOUT = "FORCE_LOGOUT"


class EntityType(str, Enum):
    """Tipe entity untuk audit logging."""
    USER = "USER"
    SESSION = "SESSION"
    CREDENTIAL = "CREDENTIAL"
    TWO_FACTOR = "TWO_FACTOR"


# Response Messages
class ResponseMessage:
    """Pesan response standar."""
    LOGIN_SUCCESS = "Login successful"
    LOGOUT_SUCCESS = "Logout successful"
    LOGOUT_ALL_SUCCESS = "Logged out from all other sessions"
    FORCE_LOGOUT_SUCCESS = "User has been logged out from all sessions"
    OTP_SENT = "Verification code sent to your email"
    TWO_FACTOR_REQUIRED = "Two-factor authentication required"
    TWO_FACTOR_ENABLED = "2FA has been enabled successfully"
    TWO_FACTOR_DISABLED = "2FA has been disabled successfully"
    BACKUP_CODES_REGENERATED = "Backup codes regenerated. Save them in a safe place"
    CREDENTIAL_REGISTERED = "Biometric credential registered successfully"
    CREDENTIAL_REMOVED = "Biometric credential removed"
    SESSION_TERMINATED = "Session terminated"
