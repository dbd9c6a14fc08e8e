"""
Modul keamanan terpusat untuk CheckMate Auth.
Menangani password hashing, pembuatan kode acak, dan digest token.
"""

import secrets
import string
from typing import List, Tuple

from passlib.context import CryptContext
from cryptography.hazmat.primitives import hashes

from checkmate_auth.core.config import settings


# Password hashing context dengan Argon2
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=4,
    argon2__memory_cost=65536,
    argon2__parallelism=2,
    argon2__hash_len=32,
    argon2__salt_len=16
)

BACKUP_CODE_ALPHABET = string.ascii_uppercase + string.digits


class Security:
    """Kelas untuk operasi keamanan. Stateless."""

    # Password Operations
    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash password menggunakan Argon2.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verifikasi password terhadap hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True jika password cocok, False jika tidak
        """
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def validate_password_strength(password: str) -> Tuple[bool, List[str]]:
        """
        Validasi password berdasarkan policy.

        Args:
            password: Password yang akan divalidasi

        Returns:
            Tuple (is_valid, list_of_errors)
        """
        errors = []

        if len(password) < settings.PASSWORD_MIN_LENGTH:
            errors.append(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")

        if password.lower() in ["password", "12345678", "qwerty", "admin"]:
            errors.append("Password is too common")

        return (len(errors) == 0, errors)

    # Code generation
    @staticmethod
    def generate_numeric_token(length: int = 6) -> str:
        """
        Generate numeric token untuk OTP.

        Args:
            length: Panjang token

        Returns:
            Numeric token
        """
        return ''.join(secrets.choice(string.digits) for _ in range(length))

    @staticmethod
    def generate_backup_codes(count: int = 10, length: int = 8) -> List[str]:
        """
        Generate backup codes untuk 2FA dalam format XXXX-XXXX.

        Args:
            count: Jumlah backup codes
            length: Panjang setiap code (tanpa dash)

        Returns:
            List of backup codes
        """
        codes = []
        for _ in range(count):
            code = ''.join(secrets.choice(BACKUP_CODE_ALPHABET) for _ in range(length))
            codes.append('-'.join([code[i:i+4] for i in range(0, len(code), 4)]))
        return codes

    @staticmethod
    def normalize_backup_code(code: str) -> str:
        """Backup code dibandingkan tanpa dash, spasi, dan case-insensitive."""
        return code.strip().replace("-", "").replace(" ", "").upper()

    # Hash Operations untuk Token Storage
    @staticmethod
    def hash_token(token: str) -> str:
        """
        Hash token untuk penyimpanan aman di database.
        Menggunakan SHA256 karena tidak perlu verifikasi seperti password.

        Args:
            token: Token yang akan di-hash

        Returns:
            Hex digest
        """
        digest = hashes.Hash(hashes.SHA256())
        digest.update(token.encode())
        return digest.finalize().hex()

    @staticmethod
    def constant_time_equals(a: str, b: str) -> bool:
        return secrets.compare_digest(a.encode(), b.encode())


security = Security()
