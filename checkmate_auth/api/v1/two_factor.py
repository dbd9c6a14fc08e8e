"""
Two-factor endpoints untuk API v1.
Status, aktivasi, nonaktivasi 2FA email, dan regenerasi backup codes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from checkmate_auth.api.dependencies.auth import get_current_user
from checkmate_auth.api.dependencies.services import get_two_factor_service
from checkmate_auth.core.constants import ResponseMessage
from checkmate_auth.models.user import User
from checkmate_auth.schemas.response import MessageResponse, error_responses
from checkmate_auth.schemas.two_factor import (
    TwoFactorStatusResponse,
    BackupCodesResponse,
    TwoFactorDisableRequest
)
from checkmate_auth.services.two_factor import TwoFactorService

router = APIRouter(prefix="/2fa", tags=["two-factor"], responses=error_responses(401, 409, 422))

CurrentUser = Annotated[User, Depends(get_current_user)]
TwoFactor = Annotated[TwoFactorService, Depends(get_two_factor_service)]


@router.get("/status", response_model=TwoFactorStatusResponse)
async def two_factor_status(current_user: CurrentUser, two_factor_service: TwoFactor):
    return await two_factor_service.status(current_user)


@router.post("/enable", response_model=BackupCodesResponse)
async def enable_two_factor(current_user: CurrentUser, two_factor_service: TwoFactor) -> BackupCodesResponse:
    """
    Aktifkan 2FA email. Backup codes dikembalikan sekali ini saja.
    """
    codes = await two_factor_service.enable(current_user)
    return BackupCodesResponse(message=ResponseMessage.TWO_FACTOR_ENABLED, backup_codes=codes)


@router.post("/disable", response_model=MessageResponse)
async def disable_two_factor(
    body: TwoFactorDisableRequest,
    current_user: CurrentUser,
    two_factor_service: TwoFactor
) -> MessageResponse:
    await two_factor_service.disable(current_user, body.password)
    return MessageResponse(message=ResponseMessage.TWO_FACTOR_DISABLED)


@router.post("/backup-codes", response_model=BackupCodesResponse)
async def regenerate_backup_codes(current_user: CurrentUser, two_factor_service: TwoFactor) -> BackupCodesResponse:
    """Ganti seluruh backup codes; codes lama langsung tidak berlaku."""
    codes = await two_factor_service.regenerate_backup_codes(current_user)
    return BackupCodesResponse(message=ResponseMessage.BACKUP_CODES_REGENERATED, backup_codes=codes)
