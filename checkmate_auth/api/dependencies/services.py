"""
Service dependencies untuk FastAPI.
Service dibuat per request; collaborator yang berumur panjang diambil dari app.state.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from checkmate_auth.api.dependencies.database import get_db
from checkmate_auth.services.audit import AuditService
from checkmate_auth.services.auth import AuthService
from checkmate_auth.services.email import EmailService
from checkmate_auth.services.two_factor import TwoFactorService
from checkmate_auth.services.user import UserService
from checkmate_auth.services.webauthn import WebAuthnService


def get_audit_service(request: Request) -> AuditService:
    audit_service = getattr(request.app.state, "audit_service", None)
    return audit_service or AuditService()


def get_email_service() -> EmailService:
    return EmailService()


async def get_auth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    audit_service: Annotated[AuditService, Depends(get_audit_service)],
    email_service: Annotated[EmailService, Depends(get_email_service)]
) -> AuthService:
    return AuthService(db, audit_service=audit_service, email_service=email_service)


async def get_two_factor_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    audit_service: Annotated[AuditService, Depends(get_audit_service)]
) -> TwoFactorService:
    return TwoFactorService(db, audit_service=audit_service)


async def get_webauthn_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    audit_service: Annotated[AuditService, Depends(get_audit_service)]
) -> WebAuthnService:
    return WebAuthnService(db, audit_service=audit_service)


async def get_user_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    audit_service: Annotated[AuditService, Depends(get_audit_service)]
) -> UserService:
    return UserService(db, audit_service=audit_service)
