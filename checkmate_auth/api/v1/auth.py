"""
Authentication endpoints untuk API v1.
Menangani login password, penyelesaian 2FA, logout, dan profil user saat ini.
"""

from typing import Annotated, Optional, Tuple, Union

from fastapi import APIRouter, Depends

from checkmate_auth.api.dependencies.auth import AuthContext, get_auth_context, get_client_info
from checkmate_auth.api.dependencies.rate_limit import login_rate_limit
from checkmate_auth.api.dependencies.services import get_auth_service
from checkmate_auth.core.constants import ResponseMessage
from checkmate_auth.schemas.auth import (
    LoginRequest,
    TokenResponse,
    TwoFactorRequiredResponse,
    TwoFactorLoginRequest,
    UserSummary
)
from checkmate_auth.schemas.response import MessageResponse, error_responses
from checkmate_auth.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"], responses=error_responses(401, 422))

ClientInfo = Annotated[Tuple[Optional[str], Optional[str]], Depends(get_client_info)]


@router.post(
    "/login",
    response_model=Union[TokenResponse, TwoFactorRequiredResponse],
    responses=error_responses(423, 429),
    dependencies=[Depends(login_rate_limit)]
)
async def login(
    body: LoginRequest,
    client: ClientInfo,
    auth_service: Annotated[AuthService, Depends(get_auth_service)]
):
    """
    Login dengan email dan password.

    Proses login:
    1. Validasi rate limit (per IP)
    2. Verifikasi kredensial dan lockout
    3. Jika 2FA aktif: kirim OTP, belum ada token
    4. Jika tidak: terbitkan token, buka session, tegakkan batas session

    Returns:
        TokenResponse, atau TwoFactorRequiredResponse jika 2FA aktif
    """
    ip_address, user_agent = client
    return await auth_service.login(
        body.email,
        body.password,
        ip_address=ip_address,
        user_agent=user_agent
    )


@router.post(
    "/login/2fa",
    response_model=TokenResponse,
    responses=error_responses(400, 429),
    dependencies=[Depends(login_rate_limit)]
)
async def login_two_factor(
    body: TwoFactorLoginRequest,
    client: ClientInfo,
    auth_service: Annotated[AuthService, Depends(get_auth_service)]
):
    """
    Selesaikan login 2FA dengan OTP dari email atau backup code.
    """
    ip_address, user_agent = client
    return await auth_service.complete_two_factor_login(
        body.email,
        code=body.code,
        backup_code=body.backup_code,
        ip_address=ip_address,
        user_agent=user_agent
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    context: Annotated[AuthContext, Depends(get_auth_context)],
    client: ClientInfo,
    auth_service: Annotated[AuthService, Depends(get_auth_service)]
) -> MessageResponse:
    """
    Logout session saat ini. Access dan refresh token-nya di-revoke.
    """
    await auth_service.logout(context.session, ip_address=client[0])
    return MessageResponse(message=ResponseMessage.LOGOUT_SUCCESS)


@router.get("/me", response_model=UserSummary)
async def me(
    context: Annotated[AuthContext, Depends(get_auth_context)]
) -> UserSummary:
    """Profil user pemilik token."""
    return UserSummary(**context.user.summary())
