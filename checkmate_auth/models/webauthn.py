"""
WebAuthn models untuk CheckMate Auth.
Credential biometrik (FIDO2) dan challenge sekali pakai untuk ceremony.
"""

from datetime import datetime
from typing import Optional, Dict, Any
import uuid

from sqlalchemy import (
    Column, String, Boolean, Integer, ForeignKey, JSON, LargeBinary, Uuid, Index
)

from checkmate_auth.db.base import BaseModel, UTCDateTime, utcnow


class WebAuthnCredential(BaseModel):
    """
    Credential WebAuthn yang terdaftar untuk user.

    Credential id disimpan sebagai raw bytes; konversi ke base64url hanya
    terjadi di boundary wire (schema/API).

    Attributes:
        wc_id: Row ID (UUID)
        wc_user_id: Pemilik credential
        wc_credential_id: Credential id dari authenticator (unique, bytes)
        wc_public_key: COSE public key bytes
        wc_sign_count: Signature counter terakhir yang diterima
        wc_counter_exempt: Authenticator tidak mendukung counter (selalu 0)
        wc_transports: Transport hints (usb, nfc, ble, internal, hybrid)
        wc_name: Label yang bisa diubah user
        wc_aaguid: AAGUID authenticator
        wc_usage_count: Jumlah autentikasi berhasil
        wc_last_used_at: Terakhir dipakai
        wc_is_active: Credential masih boleh dipakai
    """

    __tablename__ = "webauthn_credentials"

    wc_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)

    wc_user_id = Column(
        Uuid,
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    wc_credential_id = Column(LargeBinary, unique=True, nullable=False)
    wc_public_key = Column(LargeBinary, nullable=False)
    wc_sign_count = Column(Integer, default=0, nullable=False)
    wc_counter_exempt = Column(Boolean, default=False, nullable=False)
    wc_transports = Column(JSON, nullable=True, default=list)

    wc_name = Column(String(100), nullable=False, default="Biometric Device")
    wc_aaguid = Column(String(36), nullable=True)
    wc_usage_count = Column(Integer, default=0, nullable=False)
    wc_last_used_at = Column(UTCDateTime(), nullable=True)
    wc_is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("idx_webauthn_credentials_user_active", "wc_user_id", "wc_is_active"),
    )

    def record_use(self, new_sign_count: int) -> None:
        """Catat autentikasi berhasil."""
        self.wc_sign_count = new_sign_count
        self.wc_usage_count = (self.wc_usage_count or 0) + 1
        self.wc_last_used_at = utcnow()

    def to_dict(self, credential_id_b64: str) -> Dict[str, Any]:
        """
        Convert credential to dictionary.

        Args:
            credential_id_b64: Credential id dalam bentuk wire (base64url)

        Returns:
            Credential dictionary
        """
        return {
            "id": str(self.wc_id),
            "credential_id": credential_id_b64,
            "name": self.wc_name,
            "transports": self.wc_transports or [],
            "usage_count": self.wc_usage_count,
            "last_used_at": self.wc_last_used_at.isoformat() if self.wc_last_used_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<WebAuthnCredential(id={self.wc_id}, user_id={self.wc_user_id}, name={self.wc_name!r})>"


class WebAuthnChallenge(BaseModel):
    """
    Challenge sekali pakai untuk satu ceremony.

    Dihapus tepat satu kali saat verifikasi, berhasil maupun gagal.
    """

    __tablename__ = "webauthn_challenges"

    wch_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)

    wch_user_id = Column(
        Uuid,
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    wch_challenge = Column(String(128), unique=True, nullable=False)
    wch_purpose = Column(String(20), nullable=False)
    wch_expires_at = Column(UTCDateTime(), nullable=False)

    __table_args__ = (
        Index("idx_webauthn_challenges_user_purpose", "wch_user_id", "wch_purpose"),
        Index("idx_webauthn_challenges_expires_at", "wch_expires_at"),
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.wch_expires_at
