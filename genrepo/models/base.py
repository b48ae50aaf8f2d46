"""
Base Model
==========

Declarative base and mixins that record types managed by a repository
inherit from.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Set

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class IdentifierMixin:
    """Mixin that adds an auto-incrementing integer primary key named ``id``."""

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class SerializationMixin:
    """Mixin that adds to_dict() serialization method."""

    def to_dict(self, exclude: Optional[Set[str]] = None) -> Dict[str, Any]:
        """Convert model instance to dictionary keyed by column name."""
        exclude = exclude or set()
        result = {}
        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                result[column.name] = value.isoformat()
            else:
                result[column.name] = value
        return result


class BaseModel(IdentifierMixin, TimestampMixin, SerializationMixin):
    """Base model combining identifier, timestamp and serialization mixins."""
    pass
