"""
Credential verifier untuk CheckMate Auth.
Memeriksa password, menghitung kegagalan berturut-turut, dan mengunci akun sementara.
"""

from functools import lru_cache
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_, select, update

from checkmate_auth.core.config import Settings, settings as default_settings
from checkmate_auth.core.constants import AuditAction, EntityType
from checkmate_auth.core.exceptions import InvalidCredentials, AccountLocked
from checkmate_auth.core.security import security
from checkmate_auth.db.base import utcnow
from checkmate_auth.models.user import User
from checkmate_auth.services.audit import AuditService
from checkmate_auth.utils.validators import normalize_email

logger = logging.getLogger(__name__)


@lru_cache()
def _dummy_hash() -> str:
    # Dipakai untuk email yang tidak terdaftar supaya waktu respons setara
    return security.hash_password("checkmate-dummy-password")


class CredentialService:
    """
    Service class untuk verifikasi password dan lockout akun.
    Setiap panggilan menyimpan perubahan counter user (commit).
    """

    def __init__(
        self,
        db: AsyncSession,
        config: Optional[Settings] = None,
        audit_service: Optional[AuditService] = None
    ):
        self.db = db
        self.config = config or default_settings
        self.audit_service = audit_service or AuditService()

    async def verify_password(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> User:
        """
        Verifikasi email dan password.

        Args:
            email: Email user
            password: Plain text password
            ip_address: Client IP (untuk audit)
            user_agent: User agent (untuk audit)

        Returns:
            User yang terverifikasi

        Raises:
            AccountLocked: Akun sedang terkunci
            InvalidCredentials: Email tidak dikenal, password salah, atau akun nonaktif
        """
        threshold = self.config.MAX_LOGIN_ATTEMPTS
        result = await self.db.execute(
            select(User).where(User.u_email == normalize_email(email))
        )
        user = result.scalar_one_or_none()

        if user is None:
            security.verify_password(password, _dummy_hash())
            self.audit_service.log(
                AuditAction.LOGIN_FAILED,
                ip_address=ip_address,
                user_agent=user_agent,
                metadata={"reason": "unknown_email"}
            )
            raise InvalidCredentials(remaining_attempts=max(0, threshold - 1))

        now = utcnow()
        if user.is_locked(now):
            raise AccountLocked(retry_after=user.lock_remaining_seconds(now))

        if user.u_locked_until is not None:
            # Lock sudah lewat: mulai hitung dari nol lagi
            await self.db.execute(
                update(User)
                .where(User.u_id == user.u_id, User.u_locked_until <= now)
                .values(u_locked_until=None, u_failed_login_attempts=0)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()

        if not security.verify_password(password, user.u_password_hash):
            failures = await self._record_failure(user, now)
            if failures is None:
                # Request lain mengunci akun lebih dulu
                await self.db.refresh(user)
                raise AccountLocked(retry_after=user.lock_remaining_seconds(now))

            if failures >= threshold:
                if await self._lock(user, now):
                    logger.warning(f"Account {user.u_id} locked after {failures} failed attempts")
                    self.audit_service.log(
                        AuditAction.ACCOUNT_LOCKED,
                        user_id=user.u_id,
                        entity_type=EntityType.USER,
                        entity_id=user.u_id,
                        ip_address=ip_address,
                        user_agent=user_agent,
                        metadata={"failed_attempts": failures}
                    )
                await self.db.refresh(user)
                raise InvalidCredentials(remaining_attempts=0)

            await self.db.refresh(user)
            self.audit_service.log(
                AuditAction.LOGIN_FAILED,
                user_id=user.u_id,
                ip_address=ip_address,
                user_agent=user_agent,
                metadata={"reason": "invalid_password", "failed_attempts": failures}
            )
            raise InvalidCredentials(remaining_attempts=threshold - failures)

        await self.db.refresh(user)
        if not user.u_is_active:
            raise InvalidCredentials("Account is disabled")

        user.u_failed_login_attempts = 0
        user.u_locked_until = None
        user.u_last_login_at = now
        await self.db.commit()

        return user

    async def _record_failure(self, user: User, now: datetime) -> Optional[int]:
        """
        Naikkan counter kegagalan secara atomik.

        Returns:
            Jumlah kegagalan setelah increment, atau None jika akun sudah terkunci
        """
        result = await self.db.execute(
            update(User)
            .where(
                User.u_id == user.u_id,
                or_(User.u_locked_until.is_(None), User.u_locked_until <= now)
            )
            .values(
                u_failed_login_attempts=User.u_failed_login_attempts + 1,
                u_last_failed_login_at=now
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount != 1:
            return None

        failures = await self.db.execute(
            select(User.u_failed_login_attempts).where(User.u_id == user.u_id)
        )
        return failures.scalar_one()

    async def _lock(self, user: User, now: datetime) -> bool:
        """Kunci akun; hanya satu request yang berhasil memasang lock."""
        result = await self.db.execute(
            update(User)
            .where(
                User.u_id == user.u_id,
                User.u_failed_login_attempts >= self.config.MAX_LOGIN_ATTEMPTS,
                or_(User.u_locked_until.is_(None), User.u_locked_until <= now)
            )
            .values(u_locked_until=now + self.config.account_lockout_timedelta)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1
