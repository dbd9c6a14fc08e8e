"""
User service untuk CheckMate Auth.
Pembuatan akun dan lookup user.
"""

from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from checkmate_auth.core.constants import AuditAction, EntityType, UserRole
from checkmate_auth.core.exceptions import ConflictError, ValidationError
from checkmate_auth.core.security import security
from checkmate_auth.models.user import User
from checkmate_auth.services.audit import AuditService
from checkmate_auth.utils.validators import is_valid_email, normalize_email

logger = logging.getLogger(__name__)


class UserService:
    """
    Service class untuk user operations.
    """

    def __init__(self, db: AsyncSession, audit_service: Optional[AuditService] = None):
        """
        Initialize user service.

        Args:
            db: Database session
            audit_service: Audit logger
        """
        self.db = db
        self.audit_service = audit_service or AuditService()

    async def create_user(
        self,
        email: str,
        name: str,
        password: str,
        role: UserRole = UserRole.INTERN,
        created_by: Optional[UUID] = None
    ) -> User:
        """
        Create new user dengan validasi.

        Args:
            email: User email
            name: Display name
            password: Plain text password
            role: Role user
            created_by: Admin yang membuat akun

        Returns:
            Created user object

        Raises:
            ValidationError: Email atau password tidak valid
            ConflictError: Email sudah terdaftar
        """
        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValidationError("Invalid email format", details={"field": "email"})

        is_valid, errors = security.validate_password_strength(password)
        if not is_valid:
            raise ValidationError("Password does not meet requirements", details={"errors": errors})

        if await self.get_user_by_email(email) is not None:
            raise ConflictError("Email already registered")

        user = User(
            u_email=email,
            u_name=name.strip(),
            u_password_hash=security.hash_password(password),
            u_role=UserRole(role).value,
            u_is_active=True
        )
        self.db.add(user)
        await self.db.commit()

        logger.info(f"User {user.u_id} created with role {user.u_role}")
        self.audit_service.log(
            AuditAction.ACCOUNT_CREATED,
            user_id=created_by,
            entity_type=EntityType.USER,
            entity_id=user.u_id,
            metadata={"role": user.u_role}
        )
        return user

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.u_email == normalize_email(email))
        )
        return result.scalar_one_or_none()
