"""
Two-factor authentication service untuk CheckMate Auth.
Menangani OTP email dan backup codes.

Percobaan OTP dan penukaran backup code memakai satu UPDATE bersyarat
yang dicek lewat rowcount, sehingga dua request bersamaan tidak bisa
menukar code yang sama dua kali.
"""

from typing import Optional, List, Dict, Any
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from checkmate_auth.core.config import Settings, settings as default_settings
from checkmate_auth.core.constants import AuditAction, EntityType, TwoFactorMethod
from checkmate_auth.core.exceptions import (
    ChallengeExpired,
    TooManyAttempts,
    ConflictError,
    ValidationError,
    InvalidCredentials
)
from checkmate_auth.core.security import security
from checkmate_auth.db.base import utcnow
from checkmate_auth.models.two_factor import TwoFactorSetting, BackupCode
from checkmate_auth.models.user import User
from checkmate_auth.services.audit import AuditService

logger = logging.getLogger(__name__)


class TwoFactorService:
    """
    Service class untuk two-factor authentication operations.
    """

    def __init__(
        self,
        db: AsyncSession,
        config: Optional[Settings] = None,
        audit_service: Optional[AuditService] = None
    ):
        """
        Initialize 2FA service.

        Args:
            db: Database session
            config: Settings override
            audit_service: Audit logger
        """
        self.db = db
        self.config = config or default_settings
        self.audit_service = audit_service or AuditService()

    async def get_setting(self, user: User) -> Optional[TwoFactorSetting]:
        result = await self.db.execute(
            select(TwoFactorSetting).where(TwoFactorSetting.tfa_user_id == user.u_id)
        )
        return result.scalar_one_or_none()

    async def _get_or_create_setting(self, user: User) -> TwoFactorSetting:
        setting = await self.get_setting(user)
        if setting is None:
            setting = TwoFactorSetting(
                tfa_user_id=user.u_id,
                tfa_method=TwoFactorMethod.EMAIL.value,
                tfa_is_enabled=False,
                backup_codes=[]
            )
            self.db.add(setting)
            await self.db.flush()
        return setting

    async def is_enabled(self, user: User) -> bool:
        setting = await self.get_setting(user)
        return setting is not None and setting.tfa_is_enabled

    # OTP

    async def issue_otp(self, user: User) -> str:
        """
        Buat OTP baru dan timpa OTP yang masih pending.

        Args:
            user: Pemilik OTP

        Returns:
            Kode OTP plaintext untuk dikirim lewat email
        """
        setting = await self._get_or_create_setting(user)
        code = security.generate_numeric_token(self.config.OTP_LENGTH)

        setting.tfa_otp_hash = security.hash_token(code)
        setting.tfa_otp_expires_at = utcnow() + self.config.otp_expire_timedelta
        setting.tfa_otp_attempts = 0
        await self.db.commit()

        logger.info(f"OTP issued for user {user.u_id}")
        return code

    async def verify_otp(self, user: User, code: str) -> bool:
        """
        Verifikasi OTP yang pending.

        Args:
            user: Pemilik OTP
            code: Kode dari user

        Returns:
            True jika cocok (OTP dihapus), False jika salah (OTP tetap pending)

        Raises:
            ChallengeExpired: Tidak ada OTP pending atau sudah kedaluwarsa
            TooManyAttempts: Batas percobaan sudah tercapai
        """
        max_attempts = self.config.OTP_MAX_ATTEMPTS
        setting = await self.get_setting(user)
        now = utcnow()

        if setting is None or not setting.has_pending_otp or setting.otp_expired(now):
            raise ChallengeExpired()
        if setting.tfa_otp_attempts >= max_attempts:
            raise TooManyAttempts()

        result = await self.db.execute(
            update(TwoFactorSetting)
            .where(
                TwoFactorSetting.tfa_id == setting.tfa_id,
                TwoFactorSetting.tfa_otp_hash.is_not(None),
                TwoFactorSetting.tfa_otp_attempts < max_attempts,
                TwoFactorSetting.tfa_otp_expires_at > now
            )
            .values(tfa_otp_attempts=TwoFactorSetting.tfa_otp_attempts + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        await self.db.refresh(setting)

        if result.rowcount != 1:
            # Request lain menghabiskan percobaan atau OTP baru saja kedaluwarsa
            if not setting.has_pending_otp or setting.otp_expired():
                raise ChallengeExpired()
            raise TooManyAttempts()
        if not setting.has_pending_otp:
            # Sudah ditukar oleh request lain
            raise ChallengeExpired()

        digest = security.hash_token(code.strip())
        if not security.constant_time_equals(setting.tfa_otp_hash, digest):
            self.audit_service.log(
                AuditAction.TWO_FACTOR_FAILED,
                user_id=user.u_id,
                entity_type=EntityType.TWO_FACTOR,
                entity_id=setting.tfa_id,
                metadata={"attempts": setting.tfa_otp_attempts}
            )
            return False

        # Hanya satu request yang bisa menukar OTP yang sama
        redeemed = await self.db.execute(
            update(TwoFactorSetting)
            .where(
                TwoFactorSetting.tfa_id == setting.tfa_id,
                TwoFactorSetting.tfa_otp_hash == digest
            )
            .values(
                tfa_otp_hash=None,
                tfa_otp_expires_at=None,
                tfa_otp_attempts=0,
                tfa_last_used_at=utcnow(),
                tfa_total_used=func.coalesce(TwoFactorSetting.tfa_total_used, 0) + 1
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        await self.db.refresh(setting)

        if redeemed.rowcount != 1:
            raise ChallengeExpired()
        return True

    async def remaining_otp_attempts(self, user: User) -> int:
        setting = await self.get_setting(user)
        if setting is None:
            return 0
        return max(0, self.config.OTP_MAX_ATTEMPTS - setting.tfa_otp_attempts)

    # Backup codes

    async def verify_backup_code(self, user: User, code: str) -> bool:
        """
        Tukarkan backup code. Setiap code hanya bisa dipakai sekali.

        Args:
            user: Pemilik code
            code: Backup code (case-insensitive, dash opsional)

        Returns:
            True jika tepat satu code berhasil ditandai terpakai
        """
        setting = await self.get_setting(user)
        if setting is None or not code:
            return False

        result = await self.db.execute(
            update(BackupCode)
            .where(
                BackupCode.bc_setting_id == setting.tfa_id,
                BackupCode.bc_code_hash == security.hash_token(security.normalize_backup_code(code)),
                BackupCode.bc_used.is_(False)
            )
            .values(bc_used=True, bc_used_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.commit()
            return False

        self._mark_used(setting)
        await self.db.commit()

        self.audit_service.log(
            AuditAction.BACKUP_CODE_USED,
            user_id=user.u_id,
            entity_type=EntityType.TWO_FACTOR,
            entity_id=setting.tfa_id
        )
        return True

    async def remaining_backup_codes(self, user: User) -> int:
        setting = await self.get_setting(user)
        if setting is None:
            return 0
        result = await self.db.execute(
            select(func.count(BackupCode.bc_id)).where(
                BackupCode.bc_setting_id == setting.tfa_id,
                BackupCode.bc_used.is_(False)
            )
        )
        return result.scalar() or 0

    async def generate_backup_codes(self, user: User, count: Optional[int] = None) -> List[str]:
        """
        Ganti seluruh backup codes user.

        Args:
            user: Pemilik codes
            count: Jumlah codes (default dari settings)

        Returns:
            Plaintext codes; hanya ditampilkan sekali
        """
        setting = await self._get_or_create_setting(user)
        codes = security.generate_backup_codes(count or self.config.BACKUP_CODES_COUNT)

        setting.backup_codes = [
            BackupCode(
                bc_code_hash=security.hash_token(security.normalize_backup_code(code)),
                bc_position=position
            )
            for position, code in enumerate(codes)
        ]
        await self.db.commit()
        return codes

    def _mark_used(self, setting: TwoFactorSetting) -> None:
        setting.tfa_last_used_at = utcnow()
        setting.tfa_total_used = (setting.tfa_total_used or 0) + 1

    # Lifecycle

    async def enable(self, user: User) -> List[str]:
        """
        Aktifkan 2FA email dan buat backup codes baru.

        Returns:
            Plaintext backup codes

        Raises:
            ConflictError: 2FA sudah aktif
        """
        setting = await self._get_or_create_setting(user)
        if setting.tfa_is_enabled:
            raise ConflictError("2FA is already enabled")

        setting.tfa_is_enabled = True
        setting.tfa_enabled_at = utcnow()
        codes = await self.generate_backup_codes(user)

        self.audit_service.log(
            AuditAction.TWO_FACTOR_ENABLED,
            user_id=user.u_id,
            entity_type=EntityType.TWO_FACTOR,
            entity_id=setting.tfa_id
        )
        return codes

    async def disable(self, user: User, password: str) -> None:
        """
        Nonaktifkan 2FA setelah konfirmasi password.

        Raises:
            ValidationError: 2FA belum aktif
            InvalidCredentials: Password salah
        """
        setting = await self.get_setting(user)
        if setting is None or not setting.tfa_is_enabled:
            raise ValidationError("2FA is not enabled")

        if not security.verify_password(password, user.u_password_hash):
            raise InvalidCredentials("Invalid password")

        setting.tfa_is_enabled = False
        setting.tfa_enabled_at = None
        setting.clear_otp()
        setting.backup_codes = []
        await self.db.commit()

        self.audit_service.log(
            AuditAction.TWO_FACTOR_DISABLED,
            user_id=user.u_id,
            entity_type=EntityType.TWO_FACTOR,
            entity_id=setting.tfa_id
        )

    async def regenerate_backup_codes(self, user: User) -> List[str]:
        """Buat ulang backup codes; hanya untuk user dengan 2FA aktif."""
        if not await self.is_enabled(user):
            raise ValidationError("2FA is not enabled")

        codes = await self.generate_backup_codes(user)
        self.audit_service.log(
            AuditAction.BACKUP_CODES_REGENERATED,
            user_id=user.u_id,
            entity_type=EntityType.TWO_FACTOR
        )
        return codes

    async def status(self, user: User) -> Dict[str, Any]:
        setting = await self.get_setting(user)
        if setting is None:
            return {
                "enabled": False,
                "method": TwoFactorMethod.EMAIL.value,
                "enabled_at": None,
                "last_used": None,
                "total_used": 0,
                "remaining_backup_codes": 0,
            }
        return setting.to_dict(remaining_backup_codes=await self.remaining_backup_codes(user))
