"""
Revoked token model untuk CheckMate Auth.
Denylist token yang sudah tidak boleh dipakai lagi walau belum expired.
"""

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import Column, String, ForeignKey, Uuid, Index

from checkmate_auth.db.base import BaseModel, UTCDateTime, utcnow


class RevokedToken(BaseModel):
    """
    Entry revocation list. Insert-only; tidak pernah di-update.

    Attributes:
        rt_id: Entry ID (UUID)
        rt_token_hash: SHA-256 digest dari token (unique)
        rt_user_id: Pemilik token
        rt_reason: logout, password_change, security_breach, admin_action, expired
        rt_expires_at: Sama dengan expiry token; entry boleh dihapus setelahnya
    """

    __tablename__ = "revoked_tokens"

    rt_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)

    rt_token_hash = Column(String(64), unique=True, nullable=False)
    rt_user_id = Column(
        Uuid,
        ForeignKey("users.u_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    rt_reason = Column(String(30), nullable=False)
    rt_expires_at = Column(UTCDateTime(), nullable=False)

    __table_args__ = (
        Index("idx_revoked_tokens_expires_at", "rt_expires_at"),
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.rt_expires_at
