"""
Authentication service untuk CheckMate Auth.
Orkestrasi login (password, 2FA, WebAuthn), refresh, dan logout.

Semua jalur login yang berhasil berakhir di `_issue_session`: token
diterbitkan, session dibuka, lalu batas session bersamaan ditegakkan.
"""

from typing import Optional, Dict, Any, List
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from checkmate_auth.core.config import Settings, settings as default_settings
from checkmate_auth.core.constants import (
    AuditAction,
    EntityType,
    LogoutReason,
    RevocationReason,
    ResponseMessage
)
from checkmate_auth.core.exceptions import (
    ChallengeExpired,
    InvalidCode,
    InvalidRefreshToken,
    NotFoundError,
    SessionNotFound,
    ValidationError
)
from checkmate_auth.db.base import utcnow
from checkmate_auth.models.session import UserSession
from checkmate_auth.models.user import User
from checkmate_auth.services.audit import AuditService
from checkmate_auth.services.credentials import CredentialService
from checkmate_auth.services.email import EmailService
from checkmate_auth.services.revocation import RevocationService
from checkmate_auth.services.session import SessionService
from checkmate_auth.services.token import TokenService
from checkmate_auth.services.two_factor import TwoFactorService
from checkmate_auth.services.webauthn import WebAuthnService
from checkmate_auth.utils.validators import normalize_email

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service class untuk authentication flows.
    Menangani login, 2FA completion, WebAuthn login, refresh, dan logout.
    """

    def __init__(
        self,
        db: AsyncSession,
        config: Optional[Settings] = None,
        audit_service: Optional[AuditService] = None,
        email_service: Optional[EmailService] = None
    ):
        """
        Initialize authentication service.

        Args:
            db: Database session
            config: Settings override
            audit_service: Audit logger
            email_service: Pengirim OTP
        """
        self.db = db
        self.config = config or default_settings
        self.audit_service = audit_service or AuditService()
        self.email_service = email_service or EmailService(self.config)

        self.token_service = TokenService(self.config)
        self.session_service = SessionService(db, self.token_service, self.config)
        self.revocation_service = RevocationService(db, self.token_service)
        self.credential_service = CredentialService(db, self.config, self.audit_service)
        self.two_factor_service = TwoFactorService(db, self.config, self.audit_service)
        self.webauthn_service = WebAuthnService(db, self.config, self.audit_service)

    async def _issue_session(
        self,
        user: User,
        method: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Terbitkan token, buka session, dan tegakkan batas session.

        Returns:
            Dict dengan access_token, refresh_token, expires_at, dan ringkasan user
        """
        access_token = self.token_service.issue_access_token(user)
        refresh_token = self.token_service.issue_refresh_token(user)

        session = await self.session_service.open(
            user,
            access_token,
            refresh_token,
            ip_address=ip_address,
            user_agent=user_agent
        )
        evicted = await self.session_service.enforce_concurrency_cap(user.u_id)

        self.audit_service.log(
            AuditAction.LOGIN_SUCCESS,
            user_id=user.u_id,
            entity_type=EntityType.SESSION,
            entity_id=session.us_id,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata={"method": method}
        )
        if evicted:
            self.audit_service.log(
                AuditAction.SESSION_EVICTED,
                user_id=user.u_id,
                entity_type=EntityType.SESSION,
                metadata={"evicted": evicted}
            )

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_at": session.us_expires_at,
            "session_id": session.us_id,
            "user": user.summary()
        }

    async def _get_active_user(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.u_email == normalize_email(email))
        )
        user = result.scalar_one_or_none()
        if user is None or not user.u_is_active:
            return None
        return user

    async def login(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Login dengan email dan password.

        Jika 2FA aktif, OTP dikirim lewat email dan belum ada token atau
        session yang dibuat.

        Args:
            email: User email
            password: Plain text password
            ip_address: Client IP address
            user_agent: User agent string

        Returns:
            Token response, atau {"requires_2fa": True, "otp_delivered": ...}

        Raises:
            InvalidCredentials: Email atau password salah
            AccountLocked: Akun sedang terkunci
        """
        user = await self.credential_service.verify_password(
            email, password, ip_address=ip_address, user_agent=user_agent
        )

        if await self.two_factor_service.is_enabled(user):
            code = await self.two_factor_service.issue_otp(user)
            delivered = await self.email_service.send_otp_email(user.u_email, user.u_name, code)
            if not delivered:
                logger.error(f"OTP delivery failed for user {user.u_id}")

            return {
                "requires_2fa": True,
                "otp_delivered": delivered,
                "message": ResponseMessage.TWO_FACTOR_REQUIRED
            }

        return await self._issue_session(user, "password", ip_address, user_agent)

    async def complete_two_factor_login(
        self,
        email: str,
        code: Optional[str] = None,
        backup_code: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Selesaikan login 2FA dengan OTP atau backup code.

        Backup code hanya diterima selama login masih pending (langkah
        password sudah lolos dan OTP-nya belum kedaluwarsa).

        Args:
            email: User email
            code: OTP dari email
            backup_code: Backup code sekali pakai

        Returns:
            Token response (ditambah remaining_backup_codes untuk backup code)

        Raises:
            ChallengeExpired: Tidak ada login 2FA yang pending
            TooManyAttempts: Batas percobaan OTP tercapai
            InvalidCode: Code salah
        """
        if not code and not backup_code:
            raise ValidationError("Either code or backup_code is required")

        user = await self._get_active_user(email)
        setting = await self.two_factor_service.get_setting(user) if user else None
        if setting is None or not setting.tfa_is_enabled:
            raise ChallengeExpired()

        extra: Dict[str, Any] = {}
        if code:
            if not await self.two_factor_service.verify_otp(user, code):
                raise InvalidCode(
                    remaining_attempts=await self.two_factor_service.remaining_otp_attempts(user)
                )
        else:
            if not setting.has_pending_otp or setting.otp_expired():
                raise ChallengeExpired()
            if not await self.two_factor_service.verify_backup_code(user, backup_code):
                raise InvalidCode(
                    "Invalid or already used backup code",
                    remaining_backup_codes=await self.two_factor_service.remaining_backup_codes(user)
                )
            setting.clear_otp()
            await self.db.commit()
            extra["remaining_backup_codes"] = await self.two_factor_service.remaining_backup_codes(user)

        self.audit_service.log(
            AuditAction.TWO_FACTOR_VERIFIED,
            user_id=user.u_id,
            entity_type=EntityType.TWO_FACTOR,
            ip_address=ip_address,
            metadata={"method": "otp" if code else "backup_code"}
        )

        result = await self._issue_session(user, "2fa", ip_address, user_agent)
        result.update(extra)
        return result

    async def finish_webauthn_login(
        self,
        email: str,
        response: Dict[str, Any],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Dict[str, Any]:
        """Verifikasi assertion WebAuthn lalu terbitkan session."""
        user, _ = await self.webauthn_service.finish_authentication(email, response)
        return await self._issue_session(user, "webauthn", ip_address, user_agent)

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """
        Terbitkan access token baru dari refresh token.

        Returns:
            Dict dengan access_token dan expires_at

        Raises:
            InvalidRefreshToken: Token tidak valid, sudah di-revoke, atau session tidak aktif
        """
        if await self.revocation_service.is_revoked(refresh_token):
            raise InvalidRefreshToken()

        access_token, expires_at = await self.session_service.refresh(refresh_token)
        self.audit_service.log(AuditAction.TOKEN_REFRESH, metadata={"expires_at": expires_at.isoformat()})

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_at": expires_at
        }

    async def _revoke_session_tokens(self, session: UserSession, reason: RevocationReason) -> None:
        """Revoke access dan refresh token milik session lewat digest-nya."""
        await self.revocation_service.revoke_digest(
            session.us_access_token_hash,
            session.us_user_id,
            reason,
            session.us_expires_at
        )
        if session.us_refresh_token_hash:
            # Expiry refresh token tidak disimpan; pakai batas atas TTL-nya
            await self.revocation_service.revoke_digest(
                session.us_refresh_token_hash,
                session.us_user_id,
                reason,
                utcnow() + self.config.refresh_token_expire_timedelta
            )

    async def logout(self, session: UserSession, ip_address: Optional[str] = None) -> None:
        """
        Logout session saat ini dan revoke token-nya.

        Args:
            session: Session milik request
            ip_address: Client IP
        """
        await self.session_service.invalidate_session(session, LogoutReason.MANUAL)
        await self._revoke_session_tokens(session, RevocationReason.LOGOUT)

        self.audit_service.log(
            AuditAction.LOGOUT,
            user_id=session.us_user_id,
            entity_type=EntityType.SESSION,
            entity_id=session.us_id,
            ip_address=ip_address
        )

    async def terminate_session(self, user: User, session_id: UUID) -> None:
        """
        Hentikan satu session milik user (misal dari device lain).

        Raises:
            SessionNotFound: Session tidak ada, bukan milik user, atau sudah tidak aktif
        """
        session = await self.session_service.get(session_id)
        if session is None or session.us_user_id != user.u_id or not session.us_is_active:
            raise SessionNotFound(status_code=404)

        await self.session_service.invalidate_session(session, LogoutReason.MANUAL)
        await self._revoke_session_tokens(session, RevocationReason.LOGOUT)

        self.audit_service.log(
            AuditAction.SESSION_TERMINATED,
            user_id=user.u_id,
            entity_type=EntityType.SESSION,
            entity_id=session.us_id
        )

    async def logout_all(self, user: User, current_access_token: str) -> int:
        """
        Logout semua session lain kecuali session saat ini.

        Returns:
            Jumlah session yang dihentikan
        """
        sessions = await self.session_service.invalidate_all(
            user.u_id,
            LogoutReason.MANUAL,
            except_token=current_access_token
        )
        for session in sessions:
            await self._revoke_session_tokens(session, RevocationReason.LOGOUT)

        self.audit_service.log(
            AuditAction.ALL_SESSIONS_TERMINATED,
            user_id=user.u_id,
            entity_type=EntityType.USER,
            entity_id=user.u_id,
            metadata={"terminated": len(sessions)}
        )
        return len(sessions)

    async def force_logout(self, admin: User, user_id: UUID) -> int:
        """
        Admin: logout paksa semua session user.

        Returns:
            Jumlah session yang dihentikan

        Raises:
            NotFoundError: User tidak ditemukan
        """
        target = await self.db.get(User, user_id)
        if target is None:
            raise NotFoundError("User not found")

        sessions: List[UserSession] = await self.session_service.invalidate_all(
            user_id, LogoutReason.FORCED
        )
        for session in sessions:
            await self._revoke_session_tokens(session, RevocationReason.ADMIN_ACTION)

        logger.warning(f"Admin {admin.u_id} forced logout of user {user_id} ({len(sessions)} sessions)")
        self.audit_service.log(
            AuditAction.FORCE_LOGOUT,
            user_id=admin.u_id,
            entity_type=EntityType.USER,
            entity_id=user_id,
            metadata={"terminated": len(sessions)}
        )
        return len(sessions)
