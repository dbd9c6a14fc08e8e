"""
Token service untuk CheckMate Auth.
Menerbitkan access token dan refresh token (JWT) serta membaca metadata expiry.

Access token dan refresh token ditandatangani dengan key yang berbeda,
sehingga refresh token tidak pernah lolos sebagai access token dan sebaliknya.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
import secrets

from jose import jwt, JWTError, ExpiredSignatureError

from checkmate_auth.core.config import Settings, settings as default_settings
from checkmate_auth.core.constants import TokenType
from checkmate_auth.core.exceptions import (
    TokenExpired,
    InvalidToken,
    InvalidRefreshToken
)
from checkmate_auth.models.user import User


class TokenService:
    """
    Service class untuk penerbitan dan decoding JWT.
    Tidak menyentuh database; hanya bergantung pada konfigurasi.
    """

    def __init__(self, config: Optional[Settings] = None):
        """
        Initialize token service.

        Args:
            config: Settings override (default: global settings)
        """
        self.config = config or default_settings

    def _encode(self, claims: Dict[str, Any], key: str, lifetime) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, key, algorithm=self.config.ALGORITHM)

    def issue_access_token(self, user: User) -> str:
        """
        Terbitkan access token berisi user id dan role.

        Args:
            user: User yang sudah terautentikasi

        Returns:
            Encoded JWT access token
        """
        return self._encode(
            {"sub": str(user.u_id), "role": user.u_role, "type": TokenType.ACCESS.value},
            self.config.JWT_SECRET_KEY,
            self.config.access_token_expire_timedelta
        )

    def issue_refresh_token(self, user: User) -> str:
        """
        Terbitkan refresh token berisi user id dan marker refresh.

        Args:
            user: User yang sudah terautentikasi

        Returns:
            Encoded JWT refresh token
        """
        return self._encode(
            {"sub": str(user.u_id), "type": TokenType.REFRESH.value},
            self.config.REFRESH_SECRET_KEY,
            self.config.refresh_token_expire_timedelta
        )

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        """
        Decode dan validasi access token.

        Args:
            token: JWT access token

        Returns:
            Decoded token payload

        Raises:
            TokenExpired: Jika token sudah expired
            InvalidToken: Jika signature atau tipe token tidak valid
        """
        try:
            payload = jwt.decode(
                token,
                self.config.JWT_SECRET_KEY,
                algorithms=[self.config.ALGORITHM]
            )
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise InvalidToken()

        if payload.get("type") != TokenType.ACCESS.value or not payload.get("sub"):
            raise InvalidToken("Invalid token type")
        return payload

    def decode_refresh_token(self, token: str) -> Dict[str, Any]:
        """
        Decode dan validasi refresh token.

        Raises:
            InvalidRefreshToken: Untuk semua kegagalan (expired, signature, tipe)
        """
        try:
            payload = jwt.decode(
                token,
                self.config.REFRESH_SECRET_KEY,
                algorithms=[self.config.ALGORITHM]
            )
        except JWTError:
            raise InvalidRefreshToken()

        if payload.get("type") != TokenType.REFRESH.value or not payload.get("sub"):
            raise InvalidRefreshToken()
        return payload

    @staticmethod
    def expiry_of(token: str) -> datetime:
        """
        Baca claim `exp` tanpa memverifikasi signature.
        Dipakai untuk bookkeeping (expiry session dan revocation entry).

        Args:
            token: JWT apa saja yang diterbitkan service ini

        Returns:
            Expiry sebagai datetime UTC

        Raises:
            InvalidToken: Jika token tidak bisa di-decode atau tidak punya exp
        """
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            raise InvalidToken()

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            raise InvalidToken("Token has no expiry")
        return datetime.fromtimestamp(exp, tz=timezone.utc)
