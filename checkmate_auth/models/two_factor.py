"""
Two-factor authentication model untuk CheckMate Auth.
Mengelola konfigurasi 2FA (email OTP) dan backup codes untuk setiap user.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
import uuid

from sqlalchemy import (
    Column, String, Boolean, Integer, ForeignKey, Uuid,
    UniqueConstraint, Index
)
from sqlalchemy.orm import relationship, Mapped

from checkmate_auth.db.base import BaseModel, UTCDateTime, utcnow
from checkmate_auth.core.constants import TwoFactorMethod


class TwoFactorSetting(BaseModel):
    """
    Two-factor authentication configuration model.

    Menyimpan status 2FA dan OTP yang sedang pending. Paling banyak satu OTP
    pending per user; setiap OTP baru menimpa yang lama.

    Attributes:
        tfa_id: 2FA configuration ID (UUID)
        tfa_user_id: User ID yang memiliki 2FA config (unique)
        tfa_is_enabled: Whether 2FA is enabled
        tfa_method: Metode 2FA (email)
        tfa_otp_hash: Digest OTP yang pending
        tfa_otp_expires_at: Expiry OTP yang pending
        tfa_otp_attempts: Jumlah percobaan terhadap OTP yang pending
        tfa_enabled_at: When 2FA was enabled
        tfa_last_used_at: Last time 2FA was used
        tfa_total_used: Total verifikasi berhasil
    """

    __tablename__ = "two_factor_settings"

    tfa_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)

    tfa_user_id = Column(
        Uuid,
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    tfa_is_enabled = Column(Boolean, default=False, nullable=False)
    tfa_method = Column(String(20), nullable=False, default=TwoFactorMethod.EMAIL.value)

    # Pending OTP
    tfa_otp_hash = Column(String(64), nullable=True)
    tfa_otp_expires_at = Column(UTCDateTime(), nullable=True)
    tfa_otp_attempts = Column(Integer, default=0, nullable=False)

    # Timestamps and tracking
    tfa_enabled_at = Column(UTCDateTime(), nullable=True)
    tfa_last_used_at = Column(UTCDateTime(), nullable=True)
    tfa_total_used = Column(Integer, default=0, nullable=False)

    backup_codes: Mapped[List["BackupCode"]] = relationship(
        "BackupCode",
        back_populates="setting",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BackupCode.bc_position"
    )

    __table_args__ = (
        UniqueConstraint("tfa_user_id", name="uq_two_factor_settings_user_id"),
    )

    @property
    def has_pending_otp(self) -> bool:
        return self.tfa_otp_hash is not None

    def otp_expired(self, now: Optional[datetime] = None) -> bool:
        if self.tfa_otp_expires_at is None:
            return True
        return (now or utcnow()) >= self.tfa_otp_expires_at

    def clear_otp(self) -> None:
        """Hapus OTP yang pending."""
        self.tfa_otp_hash = None
        self.tfa_otp_expires_at = None
        self.tfa_otp_attempts = 0

    def to_dict(self, remaining_backup_codes: Optional[int] = None) -> Dict[str, Any]:
        """
        Convert 2FA config to dictionary.

        Args:
            remaining_backup_codes: Jumlah backup code yang belum dipakai

        Returns:
            2FA config dictionary
        """
        return {
            "enabled": self.tfa_is_enabled,
            "method": self.tfa_method,
            "enabled_at": self.tfa_enabled_at.isoformat() if self.tfa_enabled_at else None,
            "last_used": self.tfa_last_used_at.isoformat() if self.tfa_last_used_at else None,
            "total_used": self.tfa_total_used,
            "remaining_backup_codes": remaining_backup_codes,
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TwoFactorSetting(id={self.tfa_id}, user_id={self.tfa_user_id}, "
            f"enabled={self.tfa_is_enabled}, method={self.tfa_method})>"
        )


class BackupCode(BaseModel):
    """
    Backup code sekali pakai.

    Plaintext hanya ditampilkan saat generate; yang disimpan adalah digest
    dari bentuk ternormalisasi (tanpa dash, uppercase).
    """

    __tablename__ = "backup_codes"

    bc_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)

    bc_setting_id = Column(
        Uuid,
        ForeignKey("two_factor_settings.tfa_id", ondelete="CASCADE"),
        nullable=False
    )
    bc_code_hash = Column(String(64), nullable=False)
    bc_position = Column(Integer, nullable=False, default=0)
    bc_used = Column(Boolean, default=False, nullable=False)
    bc_used_at = Column(UTCDateTime(), nullable=True)

    setting: Mapped["TwoFactorSetting"] = relationship(
        "TwoFactorSetting",
        back_populates="backup_codes"
    )

    __table_args__ = (
        UniqueConstraint("bc_setting_id", "bc_code_hash", name="uq_backup_codes_setting_hash"),
        Index("idx_backup_codes_setting_used", "bc_setting_id", "bc_used"),
    )
