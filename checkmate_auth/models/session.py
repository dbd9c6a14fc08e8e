"""
User session model untuk CheckMate Auth.
Satu baris per autentikasi berhasil; mengikat pasangan token ke device/IP.
"""

from datetime import datetime
from typing import Optional, Dict, Any
import uuid

from sqlalchemy import (
    Column, String, Boolean, ForeignKey, JSON, Uuid, Index
)

from checkmate_auth.db.base import BaseModel, UTCDateTime, utcnow


class UserSession(BaseModel):
    """
    User session model untuk tracking active sessions.

    Token tidak disimpan dalam bentuk plaintext; kolom token berisi
    SHA-256 digest dan setiap lookup meng-hash token yang dipresentasikan.

    Attributes:
        us_id: Session ID (UUID)
        us_user_id: User ID yang memiliki session
        us_access_token_hash: Digest access token (unique)
        us_refresh_token_hash: Digest refresh token (unique, optional)
        us_ip_address: IP address saat session dibuat
        us_user_agent: User agent saat session dibuat
        us_device_info: Ringkasan browser/os/device hasil parsing user agent
        us_is_active: Whether session is still active
        us_last_activity: Last activity timestamp
        us_expires_at: Session expiration (mengikuti TTL access token)
        us_logout_at: Kapan session dihentikan
        us_logout_reason: manual, forced, expired, inactivity, atau security
    """

    __tablename__ = "user_sessions"

    us_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)

    us_user_id = Column(
        Uuid,
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    us_access_token_hash = Column(String(64), unique=True, nullable=False)
    us_refresh_token_hash = Column(String(64), unique=True, nullable=True)

    # Tracking fields
    us_ip_address = Column(String(45), nullable=True)
    us_user_agent = Column(String, nullable=True)
    us_device_info = Column(JSON, nullable=True, default=dict)

    # Status fields
    us_is_active = Column(Boolean, default=True, nullable=False)
    us_last_activity = Column(UTCDateTime(), nullable=False, default=utcnow)
    us_expires_at = Column(UTCDateTime(), nullable=False)
    us_logout_at = Column(UTCDateTime(), nullable=True)
    us_logout_reason = Column(String(20), nullable=True)

    __table_args__ = (
        Index("idx_user_sessions_user_active", "us_user_id", "us_is_active"),
        Index("idx_user_sessions_expires_at", "us_expires_at"),
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if session is expired."""
        return (now or utcnow()) >= self.us_expires_at

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Check if session is valid (active and not expired)."""
        return self.us_is_active and not self.is_expired(now)

    def terminate(self, reason: str) -> None:
        """
        Terminate session.

        Args:
            reason: Reason for termination
        """
        self.us_is_active = False
        self.us_logout_at = utcnow()
        self.us_logout_reason = reason

    def to_dict(self, current: bool = False) -> Dict[str, Any]:
        """
        Convert session to dictionary.

        Args:
            current: Tandai session milik request saat ini

        Returns:
            Session dictionary
        """
        return {
            "id": str(self.us_id),
            "user_id": str(self.us_user_id),
            "ip_address": self.us_ip_address,
            "user_agent": self.us_user_agent,
            "device_info": self.us_device_info or {},
            "is_active": self.us_is_active,
            "is_current": current,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "last_activity": self.us_last_activity.isoformat() if self.us_last_activity else None,
            "expires_at": self.us_expires_at.isoformat(),
            "logout_reason": self.us_logout_reason,
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserSession(id={self.us_id}, user_id={self.us_user_id}, "
            f"active={self.us_is_active}, expires={self.us_expires_at})>"
        )
