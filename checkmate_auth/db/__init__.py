"""
Database module untuk CheckMate Auth.
Berisi base model, session management, dan konfigurasi database.
"""

from checkmate_auth.db.base import Base, BaseModel, UTCDateTime, utcnow
from checkmate_auth.db.session import (
    engine,
    SessionLocal,
    get_db_context,
    init_db,
    close_db
)

__all__ = [
    "Base",
    "BaseModel",
    "UTCDateTime",
    "utcnow",
    "engine",
    "SessionLocal",
    "get_db_context",
    "init_db",
    "close_db"
]
