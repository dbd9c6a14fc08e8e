"""
Authentication dependencies untuk FastAPI.
Menyediakan dependency injection untuk autentikasi dan otorisasi.

Urutan pengecekan bearer token: revocation list, signature dan expiry,
session aktif, lalu status user.
"""

from dataclasses import dataclass
from typing import Optional, Annotated, Callable, Tuple
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from checkmate_auth.api.dependencies.database import get_db
from checkmate_auth.core.config import settings
from checkmate_auth.core.constants import UserRole
from checkmate_auth.core.exceptions import (
    InvalidToken,
    TokenRevoked,
    SessionNotFound,
    Unauthorized
)
from checkmate_auth.models.session import UserSession
from checkmate_auth.models.user import User
from checkmate_auth.services.revocation import RevocationService
from checkmate_auth.services.session import SessionService
from checkmate_auth.services.token import TokenService

# OAuth2 scheme untuk Bearer token
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False  # Kita handle error sendiri
)


@dataclass
class AuthContext:
    """User, session, dan token milik request saat ini."""
    user: User
    session: UserSession
    access_token: str


async def get_auth_context(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> AuthContext:
    """
    Validasi bearer token dan session-nya.

    Args:
        token: JWT access token dari Authorization header
        db: Database session

    Returns:
        AuthContext

    Raises:
        InvalidToken: Token tidak ada, tidak valid, atau user nonaktif
        TokenRevoked: Token ada di revocation list
        TokenExpired: Token sudah expired
        SessionNotFound: Session tidak aktif
    """
    if not token:
        raise InvalidToken("Not authenticated")

    token_service = TokenService()
    if await RevocationService(db, token_service).is_revoked(token):
        raise TokenRevoked()

    payload = token_service.decode_access_token(token)

    session = await SessionService(db, token_service).validate(token)
    if session is None:
        raise SessionNotFound()

    if str(session.us_user_id) != payload.get("sub"):
        raise InvalidToken()

    user = await db.get(User, UUID(payload["sub"]))
    if user is None or not user.u_is_active:
        raise InvalidToken("User not found or inactive")

    return AuthContext(user=user, session=session, access_token=token)


async def get_current_user(
    context: Annotated[AuthContext, Depends(get_auth_context)]
) -> User:
    """Get current active user dari bearer token."""
    return context.user


def require_role(*roles: UserRole) -> Callable:
    """
    Buat dependency yang hanya meloloskan role tertentu.

    Args:
        roles: Role yang diizinkan

    Returns:
        Dependency yang mengembalikan current user
    """
    allowed = {UserRole(role).value for role in roles}

    async def dependency(
        current_user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        if current_user.u_role not in allowed:
            raise Unauthorized()
        return current_user

    return dependency


require_admin = require_role(UserRole.ADMIN)


def get_client_info(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """IP dan user agent client untuk session dan audit."""
    client_ip = request.client.host if request.client else None
    return client_ip, request.headers.get("user-agent")
