"""
WebAuthn endpoints untuk API v1.
Registrasi credential biometrik (authenticated) dan login biometrik (public).
"""

from typing import Annotated, Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends
from webauthn.helpers import bytes_to_base64url

from checkmate_auth.api.dependencies.auth import get_current_user, get_client_info
from checkmate_auth.api.dependencies.rate_limit import login_rate_limit
from checkmate_auth.api.dependencies.services import get_auth_service, get_webauthn_service
from checkmate_auth.core.constants import ResponseMessage
from checkmate_auth.models.user import User
from checkmate_auth.models.webauthn import WebAuthnCredential
from checkmate_auth.schemas.auth import TokenResponse
from checkmate_auth.schemas.response import MessageResponse, error_responses
from checkmate_auth.schemas.webauthn import (
    RegistrationVerifyRequest,
    AuthenticationOptionsRequest,
    AuthenticationVerifyRequest,
    CredentialRenameRequest,
    CredentialResponse
)
from checkmate_auth.services.auth import AuthService
from checkmate_auth.services.webauthn import WebAuthnService

router = APIRouter(
    prefix="/webauthn",
    tags=["webauthn"],
    responses=error_responses(400, 401, 404, 409, 422, 429)
)

CurrentUser = Annotated[User, Depends(get_current_user)]
WebAuthn = Annotated[WebAuthnService, Depends(get_webauthn_service)]


def _credential_response(credential: WebAuthnCredential) -> CredentialResponse:
    return CredentialResponse(**credential.to_dict(bytes_to_base64url(credential.wc_credential_id)))


@router.post("/register/options")
async def registration_options(
    current_user: CurrentUser,
    webauthn_service: WebAuthn
) -> Dict[str, Any]:
    """Options untuk `navigator.credentials.create()`."""
    return await webauthn_service.begin_registration(current_user)


@router.post("/register/verify", response_model=CredentialResponse, status_code=201)
async def registration_verify(
    body: RegistrationVerifyRequest,
    current_user: CurrentUser,
    webauthn_service: WebAuthn
) -> CredentialResponse:
    """Verifikasi attestation dan simpan credential baru."""
    credential = await webauthn_service.finish_registration(current_user, body.response, body.label)
    return _credential_response(credential)


@router.post("/auth/options", dependencies=[Depends(login_rate_limit)])
async def authentication_options(
    body: AuthenticationOptionsRequest,
    webauthn_service: WebAuthn
) -> Dict[str, Any]:
    """Options untuk `navigator.credentials.get()`."""
    return await webauthn_service.begin_authentication(body.email)


@router.post("/auth/verify", response_model=TokenResponse, dependencies=[Depends(login_rate_limit)])
async def authentication_verify(
    body: AuthenticationVerifyRequest,
    client: Annotated[Tuple[Optional[str], Optional[str]], Depends(get_client_info)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)]
):
    """Verifikasi assertion lalu terbitkan token dan session."""
    ip_address, user_agent = client
    return await auth_service.finish_webauthn_login(
        body.email,
        body.response,
        ip_address=ip_address,
        user_agent=user_agent
    )


@router.get("/credentials", response_model=List[CredentialResponse])
async def list_credentials(
    current_user: CurrentUser,
    webauthn_service: WebAuthn
) -> List[CredentialResponse]:
    credentials = await webauthn_service.list_credentials(current_user)
    return [_credential_response(c) for c in credentials]


@router.patch("/credentials/{credential_id}", response_model=CredentialResponse)
async def rename_credential(
    credential_id: UUID,
    body: CredentialRenameRequest,
    current_user: CurrentUser,
    webauthn_service: WebAuthn
) -> CredentialResponse:
    credential = await webauthn_service.rename_credential(current_user, credential_id, body.name)
    return _credential_response(credential)


@router.delete("/credentials/{credential_id}", response_model=MessageResponse)
async def delete_credential(
    credential_id: UUID,
    current_user: CurrentUser,
    webauthn_service: WebAuthn
) -> MessageResponse:
    await webauthn_service.delete_credential(current_user, credential_id)
    return MessageResponse(message=ResponseMessage.CREDENTIAL_REMOVED)
