"""
Base model untuk SQLAlchemy.
Semua model harus inherit dari BaseModel untuk mendapatkan common fields dan behavior.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import uuid

from sqlalchemy import Column, DateTime, inspect
from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    """Waktu sekarang, timezone-aware UTC."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    DateTime yang selalu timezone-aware UTC.

    PostgreSQL mengembalikan nilai aware, SQLite mengembalikan nilai naive;
    type ini menyamakan keduanya supaya perbandingan dengan `utcnow()`
    aman di semua backend.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


@as_declarative()
class Base:
    """
    Base class untuk semua SQLAlchemy models.
    Menggunakan @as_declarative untuk membuat declarative base.
    """

    def dict(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: Set of fields to exclude

        Returns:
            Dictionary representation of model
        """
        exclude = exclude or set()

        result = {}
        for column in inspect(self.__class__).columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.key)

            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, bytes):
                continue

            result[column.name] = value

        return result

    def __repr__(self) -> str:
        """
        String representation of model instance.
        """
        class_name = self.__class__.__name__

        primary_keys = []
        for column in inspect(self.__class__).primary_key:
            value = getattr(self, column.key)
            primary_keys.append(f"{column.name}={value}")

        if primary_keys:
            return f"<{class_name}({', '.join(primary_keys)})>"
        return f"<{class_name}>"


class BaseModel(Base):
    """
    Abstract base model dengan common fields.
    Semua models yang perlu timestamp fields harus inherit dari ini.
    """
    __abstract__ = True

    created_at = Column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
        index=True
    )

    updated_at = Column(
        UTCDateTime(),
        default=None,
        onupdate=utcnow,
        nullable=True
    )

    @declared_attr
    def __mapper_args__(cls):
        """
        SQLAlchemy mapper arguments.
        Enable eager defaults untuk mendapatkan server-generated values.
        """
        return {
            "eager_defaults": True
        }
