"""
Audit log model untuk CheckMate Auth.
Mencatat event keamanan penting untuk audit trail.
"""

import uuid

from sqlalchemy import Column, String, ForeignKey, JSON, Uuid, Index

from checkmate_auth.db.base import Base, UTCDateTime, utcnow


class AuditLog(Base):
    """
    Audit log model untuk tracking event keamanan.

    Audit logs tidak di-update atau delete, hanya insert.
    Logs tetap ada meskipun user dihapus (SET NULL).

    Attributes:
        al_id: Audit log ID (UUID)
        al_user_id: User ID terkait (nullable)
        al_action: Action yang dilakukan
        al_entity_type: Tipe entity yang terkena
        al_entity_id: ID entity yang terkena
        al_ip_address: IP address saat action
        al_user_agent: User agent saat action
        al_metadata: Detail tambahan
        al_created_at: Timestamp audit log
    """

    __tablename__ = "audit_logs"

    al_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)

    al_user_id = Column(
        Uuid,
        ForeignKey("users.u_id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    al_action = Column(String(100), nullable=False)
    al_entity_type = Column(String(50), nullable=True)
    al_entity_id = Column(String(64), nullable=True)

    al_ip_address = Column(String(45), nullable=True)
    al_user_agent = Column(String, nullable=True)
    al_metadata = Column(JSON, nullable=True, default=dict)
    al_created_at = Column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_logs_action", "al_action"),
        Index("idx_audit_logs_created_at", "al_created_at"),
    )
