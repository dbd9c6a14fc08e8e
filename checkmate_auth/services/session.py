"""
Session service untuk CheckMate Auth.
Registry session server-side: membuka, memvalidasi, membatasi, dan menghentikan session.
"""

from datetime import datetime, timedelta
from typing import Optional, List, Tuple
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func

from checkmate_auth.core.config import Settings, settings as default_settings
from checkmate_auth.core.constants import LogoutReason
from checkmate_auth.core.exceptions import InvalidRefreshToken
from checkmate_auth.core.security import security
from checkmate_auth.db.base import utcnow
from checkmate_auth.models.session import UserSession
from checkmate_auth.models.user import User
from checkmate_auth.services.token import TokenService
from checkmate_auth.utils.validators import clean_ip_address, parse_user_agent

logger = logging.getLogger(__name__)


class SessionService:
    """
    Service class untuk session registry.

    Batas session bersamaan ditegakkan sebagai langkah kompensasi setelah
    session dibuat, bukan sebagai lock; dua login simultan boleh sesaat
    melebihi batas sampai pass eviction berikutnya.
    """

    def __init__(
        self,
        db: AsyncSession,
        token_service: Optional[TokenService] = None,
        config: Optional[Settings] = None
    ):
        """
        Initialize session service.

        Args:
            db: Database session
            token_service: Token issuer untuk refresh dan expiry
            config: Settings override
        """
        self.db = db
        self.config = config or default_settings
        self.token_service = token_service or TokenService(self.config)

    async def open(
        self,
        user: User,
        access_token: str,
        refresh_token: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> UserSession:
        """
        Simpan session aktif baru. Expiry mengikuti expiry access token.

        Args:
            user: Pemilik session
            access_token: Access token yang baru diterbitkan
            refresh_token: Refresh token pasangannya (optional)
            ip_address: Client IP
            user_agent: User agent

        Returns:
            Session yang dibuat
        """
        now = utcnow()
        session = UserSession(
            us_user_id=user.u_id,
            us_access_token_hash=security.hash_token(access_token),
            us_refresh_token_hash=security.hash_token(refresh_token) if refresh_token else None,
            us_ip_address=clean_ip_address(ip_address),
            us_user_agent=user_agent,
            us_device_info=parse_user_agent(user_agent),
            us_is_active=True,
            us_last_activity=now,
            us_expires_at=self.token_service.expiry_of(access_token)
        )
        self.db.add(session)
        await self.db.commit()

        logger.info(f"Session {session.us_id} opened for user {user.u_id}")
        return session

    async def list_active(self, user_id: UUID) -> List[UserSession]:
        """
        Session aktif dan belum expired, terbaru dulu berdasarkan aktivitas.

        Args:
            user_id: User ID

        Returns:
            List session
        """
        result = await self.db.execute(
            select(UserSession)
            .where(
                UserSession.us_user_id == user_id,
                UserSession.us_is_active.is_(True),
                UserSession.us_expires_at > utcnow()
            )
            .order_by(UserSession.us_last_activity.desc(), UserSession.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all_active(self, page: int = 1, per_page: int = 50) -> Tuple[List[UserSession], int]:
        """
        Semua session aktif di sistem (untuk admin).

        Returns:
            Tuple of (sessions, total_count)
        """
        filters = (
            UserSession.us_is_active.is_(True),
            UserSession.us_expires_at > utcnow()
        )
        total = (await self.db.execute(
            select(func.count(UserSession.us_id)).where(*filters)
        )).scalar()

        result = await self.db.execute(
            select(UserSession)
            .where(*filters)
            .order_by(UserSession.us_last_activity.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total

    async def get(self, session_id: UUID) -> Optional[UserSession]:
        result = await self.db.execute(
            select(UserSession).where(UserSession.us_id == session_id)
        )
        return result.scalar_one_or_none()

    async def get_by_access_token(self, access_token: str) -> Optional[UserSession]:
        """Lookup session tanpa efek samping."""
        result = await self.db.execute(
            select(UserSession).where(
                UserSession.us_access_token_hash == security.hash_token(access_token)
            )
        )
        return result.scalar_one_or_none()

    async def enforce_concurrency_cap(self, user_id: UUID, max_sessions: Optional[int] = None) -> int:
        """
        Hentikan session tertua yang melebihi batas (reason: security).

        Args:
            user_id: User ID
            max_sessions: Batas session aktif (default dari settings)

        Returns:
            Jumlah session yang di-evict
        """
        limit = max_sessions if max_sessions is not None else self.config.MAX_CONCURRENT_SESSIONS
        active = await self.list_active(user_id)
        excess = active[limit:]

        for session in excess:
            session.terminate(LogoutReason.SECURITY.value)

        if excess:
            await self.db.commit()
            logger.warning(
                f"Evicted {len(excess)} session(s) for user {user_id} over concurrent limit {limit}"
            )
        return len(excess)

    async def validate(self, access_token: str) -> Optional[UserSession]:
        """
        Kembalikan session jika aktif dan belum expired; perbarui last activity.

        Args:
            access_token: Access token dari request

        Returns:
            Session atau None
        """
        session = await self.get_by_access_token(access_token)
        if session is None or not session.is_valid():
            return None

        session.us_last_activity = utcnow()
        await self.db.commit()
        return session

    async def invalidate_session(self, session: UserSession, reason: LogoutReason) -> None:
        """Hentikan satu session yang sudah di-load."""
        session.terminate(LogoutReason(reason).value)
        await self.db.commit()

    async def invalidate(self, access_token: str, reason: LogoutReason = LogoutReason.MANUAL) -> bool:
        """
        Hentikan session pemilik access token.

        Args:
            access_token: Access token session
            reason: Alasan logout

        Returns:
            True jika ada session aktif yang dihentikan
        """
        result = await self.db.execute(
            update(UserSession)
            .where(
                UserSession.us_access_token_hash == security.hash_token(access_token),
                UserSession.us_is_active.is_(True)
            )
            .values(
                us_is_active=False,
                us_logout_at=utcnow(),
                us_logout_reason=LogoutReason(reason).value
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def invalidate_all(
        self,
        user_id: UUID,
        reason: LogoutReason = LogoutReason.FORCED,
        except_token: Optional[str] = None
    ) -> List[UserSession]:
        """
        Hentikan semua session aktif user, kecuali session milik `except_token`.

        Args:
            user_id: User ID
            reason: Alasan logout
            except_token: Access token session yang dipertahankan

        Returns:
            Session yang dihentikan (untuk revocation token-nya)
        """
        query = select(UserSession).where(
            UserSession.us_user_id == user_id,
            UserSession.us_is_active.is_(True)
        )
        if except_token:
            query = query.where(
                UserSession.us_access_token_hash != security.hash_token(except_token)
            )

        sessions = list((await self.db.execute(query)).scalars().all())
        for session in sessions:
            session.terminate(LogoutReason(reason).value)

        await self.db.commit()
        return sessions

    async def refresh(self, refresh_token: str) -> Tuple[str, datetime]:
        """
        Terbitkan access token baru dan rotasi ke session yang sama.
        Refresh token sendiri tidak dirotasi.

        Args:
            refresh_token: Refresh token dari client

        Returns:
            Tuple (access_token, expires_at)

        Raises:
            InvalidRefreshToken: Token tidak valid, session tidak aktif, atau user nonaktif
        """
        payload = self.token_service.decode_refresh_token(refresh_token)

        result = await self.db.execute(
            select(UserSession).where(
                UserSession.us_refresh_token_hash == security.hash_token(refresh_token),
                UserSession.us_is_active.is_(True),
                UserSession.us_expires_at > utcnow()
            )
        )
        session = result.scalar_one_or_none()
        if session is None or str(session.us_user_id) != payload["sub"]:
            raise InvalidRefreshToken()

        user = await self.db.get(User, session.us_user_id)
        if user is None or not user.u_is_active:
            raise InvalidRefreshToken("User not found or inactive")

        access_token = self.token_service.issue_access_token(user)
        expires_at = self.token_service.expiry_of(access_token)

        session.us_access_token_hash = security.hash_token(access_token)
        session.us_last_activity = utcnow()
        session.us_expires_at = expires_at
        await self.db.commit()

        logger.info(f"Access token refreshed for session {session.us_id}")
        return access_token, expires_at

    async def cleanup_inactive(self, inactivity: Optional[timedelta] = None) -> int:
        """
        Hentikan session yang idle lebih lama dari batas (reason: inactivity).

        Returns:
            Jumlah session yang dihentikan
        """
        cutoff = utcnow() - (inactivity or self.config.session_inactivity_timedelta)
        result = await self.db.execute(
            update(UserSession)
            .where(
                UserSession.us_is_active.is_(True),
                UserSession.us_last_activity < cutoff
            )
            .values(
                us_is_active=False,
                us_logout_at=utcnow(),
                us_logout_reason=LogoutReason.INACTIVITY.value
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount

    async def purge_expired(self) -> int:
        """
        Hapus session yang sudah lewat expiry.

        Returns:
            Jumlah session yang dihapus
        """
        result = await self.db.execute(
            delete(UserSession)
            .where(UserSession.us_expires_at <= utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount
