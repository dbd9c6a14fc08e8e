"""
User endpoints untuk API v1.
Pembuatan akun oleh admin.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from checkmate_auth.api.dependencies.auth import require_admin
from checkmate_auth.api.dependencies.services import get_user_service
from checkmate_auth.models.user import User
from checkmate_auth.schemas.response import error_responses
from checkmate_auth.schemas.user import UserCreate, UserResponse
from checkmate_auth.services.user import UserService

router = APIRouter(prefix="/users", tags=["users"], responses=error_responses(401, 403, 409, 422))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    admin: Annotated[User, Depends(require_admin)],
    user_service: Annotated[UserService, Depends(get_user_service)]
) -> UserResponse:
    """
    Admin: buat akun baru.

    Raises:
        ConflictError: Email sudah terdaftar
        ValidationError: Password tidak memenuhi policy
    """
    user = await user_service.create_user(
        email=body.email,
        name=body.name,
        password=body.password,
        role=body.role,
        created_by=admin.u_id
    )
    return UserResponse.model_validate(user)
