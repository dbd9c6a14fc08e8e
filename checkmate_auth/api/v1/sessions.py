"""
Session endpoints untuk API v1.
Refresh access token, daftar session, dan logout per session atau massal.
"""

import math
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from checkmate_auth.api.dependencies.auth import AuthContext, get_auth_context, require_admin
from checkmate_auth.api.dependencies.database import get_db
from checkmate_auth.api.dependencies.services import get_auth_service
from checkmate_auth.core.constants import ResponseMessage
from checkmate_auth.models.user import User
from checkmate_auth.schemas.auth import RefreshTokenRequest, RefreshTokenResponse
from checkmate_auth.schemas.response import MessageResponse, PaginatedResponse, error_responses
from checkmate_auth.schemas.session import SessionResponse, SessionListResponse
from checkmate_auth.services.auth import AuthService
from checkmate_auth.services.session import SessionService

router = APIRouter(prefix="/sessions", tags=["sessions"], responses=error_responses(401, 403, 404, 422))

Auth = Annotated[AuthService, Depends(get_auth_service)]


@router.post("/refresh", response_model=RefreshTokenResponse)
async def refresh_token(
    body: RefreshTokenRequest,
    auth_service: Auth
):
    """
    Terbitkan access token baru. Refresh token tidak berubah.
    """
    return await auth_service.refresh(body.refresh_token)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    context: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> SessionListResponse:
    """Session aktif milik user saat ini."""
    sessions = await SessionService(db).list_active(context.user.u_id)
    return SessionListResponse(
        sessions=[
            SessionResponse(**s.to_dict(current=s.us_id == context.session.us_id))
            for s in sessions
        ],
        total=len(sessions)
    )


@router.get("/all", response_model=PaginatedResponse[SessionResponse])
async def list_all_sessions(
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200)
) -> PaginatedResponse[SessionResponse]:
    """Admin: semua session aktif di sistem."""
    sessions, total = await SessionService(db).list_all_active(page=page, per_page=per_page)
    return PaginatedResponse[SessionResponse](
        items=[SessionResponse(**s.to_dict()) for s in sessions],
        total=total,
        page=page,
        per_page=per_page,
        pages=math.ceil(total / per_page) if total else 0
    )


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    context: Annotated[AuthContext, Depends(get_auth_context)],
    auth_service: Auth
) -> MessageResponse:
    """Logout semua session lain, session saat ini tetap aktif."""
    terminated = await auth_service.logout_all(context.user, context.access_token)
    return MessageResponse(
        message=ResponseMessage.LOGOUT_ALL_SUCCESS,
        details={"terminated": terminated}
    )


@router.post("/force-logout/{user_id}", response_model=MessageResponse)
async def force_logout(
    user_id: UUID,
    admin: Annotated[User, Depends(require_admin)],
    auth_service: Auth
) -> MessageResponse:
    """Admin: logout paksa semua session user."""
    terminated = await auth_service.force_logout(admin, user_id)
    return MessageResponse(
        message=ResponseMessage.FORCE_LOGOUT_SUCCESS,
        details={"terminated": terminated}
    )


@router.delete("/{session_id}", response_model=MessageResponse)
async def terminate_session(
    session_id: UUID,
    context: Annotated[AuthContext, Depends(get_auth_context)],
    auth_service: Auth
) -> MessageResponse:
    """Hentikan satu session milik user saat ini."""
    await auth_service.terminate_session(context.user, session_id)
    return MessageResponse(message=ResponseMessage.SESSION_TERMINATED)
