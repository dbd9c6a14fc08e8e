"""
Custom exceptions untuk CheckMate Auth.
Semua custom exceptions harus inherit dari base exceptions ini.

Setiap exception membawa `kind` yang stabil; HTTP layer merender
`kind`, `message` dan `details` sebagai response terstruktur.
"""

from typing import Optional, Dict, Any


class CheckmateAuthException(Exception):
    """Base exception untuk semua custom exceptions di CheckMate Auth."""

    kind: str = "Error"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code
            details: Additional error details
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Representasi terstruktur untuk caller."""
        return {"kind": self.kind, "message": self.message, "details": self.details}


class ValidationError(CheckmateAuthException):
    """Exception untuk error validasi data."""

    kind = "ValidationError"

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


class NotFoundError(CheckmateAuthException):
    """Exception untuk resource tidak ditemukan."""

    kind = "NotFound"

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=404, details=details)


class ConflictError(CheckmateAuthException):
    """Exception untuk konflik data (misal: duplicate entry)."""

    kind = "Conflict"

    def __init__(self, message: str = "Resource conflict", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=409, details=details)


class RateLimitError(CheckmateAuthException):
    """Exception untuk rate limit exceeded."""

    kind = "RateLimited"

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[int] = None):
        details = {"retry_after": retry_after} if retry_after is not None else None
        super().__init__(message, status_code=429, details=details)


# Credential verification

class InvalidCredentials(CheckmateAuthException):
    """Email atau password salah. Bentuknya sama untuk email yang tidak terdaftar."""

    kind = "InvalidCredentials"

    def __init__(self, message: str = "Invalid email or password", remaining_attempts: Optional[int] = None):
        details = {"remaining_attempts": remaining_attempts} if remaining_attempts is not None else None
        super().__init__(message, status_code=401, details=details)
        self.remaining_attempts = remaining_attempts


class AccountLocked(CheckmateAuthException):
    """Akun terkunci sementara karena terlalu banyak percobaan gagal."""

    kind = "AccountLocked"

    def __init__(self, retry_after: int, message: str = "Account is temporarily locked"):
        super().__init__(message, status_code=423, details={"retry_after": retry_after})
        self.retry_after = retry_after


# Tokens and sessions

class TokenExpired(CheckmateAuthException):
    kind = "TokenExpired"

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, status_code=401)


class InvalidToken(CheckmateAuthException):
    kind = "InvalidToken"

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, status_code=401)


class TokenRevoked(CheckmateAuthException):
    kind = "TokenRevoked"

    def __init__(self, message: str = "Token has been revoked"):
        super().__init__(message, status_code=401)


class InvalidRefreshToken(CheckmateAuthException):
    kind = "InvalidRefreshToken"

    def __init__(self, message: str = "Invalid or expired refresh token"):
        super().__init__(message, status_code=401)


class SessionNotFound(CheckmateAuthException):
    kind = "SessionNotFound"

    def __init__(self, message: str = "Session not found or no longer active", status_code: int = 401):
        super().__init__(message, status_code=status_code)


class Unauthorized(CheckmateAuthException):
    """Role user tidak diizinkan mengakses resource."""

    kind = "Unauthorized"

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message, status_code=403)


# Two-factor

class ChallengeExpired(CheckmateAuthException):
    """Tidak ada OTP yang pending atau OTP sudah kedaluwarsa."""

    kind = "ChallengeExpired"

    def __init__(self, message: str = "Verification code has expired. Please request a new one"):
        super().__init__(message, status_code=400)


class TooManyAttempts(CheckmateAuthException):
    kind = "TooManyAttempts"

    def __init__(self, message: str = "Too many failed attempts. Please request a new code"):
        super().__init__(message, status_code=429)


class InvalidCode(CheckmateAuthException):
    kind = "InvalidCode"

    def __init__(
        self,
        message: str = "Invalid verification code",
        remaining_attempts: Optional[int] = None,
        remaining_backup_codes: Optional[int] = None
    ):
        details: Dict[str, Any] = {}
        if remaining_attempts is not None:
            details["remaining_attempts"] = remaining_attempts
        if remaining_backup_codes is not None:
            details["remaining_backup_codes"] = remaining_backup_codes
        super().__init__(message, status_code=401, details=details)


# WebAuthn

class ChallengeExpiredOrInvalid(CheckmateAuthException):
    kind = "ChallengeExpiredOrInvalid"

    def __init__(self, message: str = "Challenge expired or invalid. Please try again"):
        super().__init__(message, status_code=400)


class CredentialNotFound(CheckmateAuthException):
    """Tidak ada credential. Bentuknya sama untuk email yang tidak terdaftar."""

    kind = "CredentialNotFound"

    def __init__(self, message: str = "No biometric credentials found for this account"):
        super().__init__(message, status_code=404)


class ReplayDetected(CheckmateAuthException):
    """Signature counter tidak naik; authenticator kemungkinan di-clone."""

    kind = "ReplayDetected"

    def __init__(self, stored_counter: int, presented_counter: int):
        super().__init__(
            "Authenticator signature counter did not increase",
            status_code=401,
            details={"stored_counter": stored_counter, "presented_counter": presented_counter}
        )


class VerificationFailed(CheckmateAuthException):
    """Response WebAuthn gagal diverifikasi secara kriptografis."""

    kind = "VerificationFailed"

    def __init__(self, message: str = "WebAuthn verification failed"):
        super().__init__(message, status_code=400)
