"""
User model untuk CheckMate Auth.
Model utama yang merepresentasikan identitas user dalam sistem.
"""

from datetime import datetime
from typing import Optional, Dict, Any
import math
import uuid

from sqlalchemy import (
    Column, String, Boolean, Integer, Uuid,
    CheckConstraint, Index
)

from checkmate_auth.db.base import BaseModel, UTCDateTime, utcnow
from checkmate_auth.core.constants import UserRole


class User(BaseModel):
    """
    User model untuk authentication.

    Attributes:
        u_id: Unique user ID (UUID)
        u_email: User's email address (unique, lower-case)
        u_name: Display name
        u_password_hash: Argon2 password hash
        u_role: admin, supervisor, atau intern
        u_is_active: Whether user account is active
        u_failed_login_attempts: Number of consecutive failed login attempts
        u_locked_until: Account locked until this timestamp
        u_last_failed_login_at: Last failed login timestamp
        u_last_login_at: Last successful login timestamp
    """

    __tablename__ = "users"

    u_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)

    u_email = Column(String(255), unique=True, nullable=False, index=True)
    u_name = Column(String(255), nullable=False)
    u_password_hash = Column(String(255), nullable=False)
    u_role = Column(String(20), nullable=False, default=UserRole.INTERN.value)

    u_is_active = Column(Boolean, default=True, nullable=False)

    # Security fields
    u_failed_login_attempts = Column(Integer, default=0, nullable=False)
    u_locked_until = Column(UTCDateTime(), nullable=True)
    u_last_failed_login_at = Column(UTCDateTime(), nullable=True)
    u_last_login_at = Column(UTCDateTime(), nullable=True)

    __table_args__ = (
        CheckConstraint("length(u_email) >= 3", name="ck_users_email_length"),
        CheckConstraint(
            "u_role IN ('admin', 'supervisor', 'intern')",
            name="ck_users_role"
        ),
        Index("idx_users_is_active", "u_is_active"),
    )

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """Check if user is currently locked."""
        if self.u_locked_until is None:
            return False
        return (now or utcnow()) < self.u_locked_until

    def lock_remaining_seconds(self, now: Optional[datetime] = None) -> int:
        """Sisa durasi lock dalam detik (dibulatkan ke atas)."""
        if self.u_locked_until is None:
            return 0
        remaining = (self.u_locked_until - (now or utcnow())).total_seconds()
        return max(0, math.ceil(remaining))

    def summary(self) -> Dict[str, Any]:
        """Ringkasan identitas yang aman dikirim ke client."""
        return {
            "id": str(self.u_id),
            "email": self.u_email,
            "name": self.u_name,
            "role": self.u_role,
        }

    def __repr__(self) -> str:
        return f"<User(id={self.u_id}, email={self.u_email}, role={self.u_role})>"
