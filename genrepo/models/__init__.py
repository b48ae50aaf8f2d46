"""
Database models package.

Contains the declarative base and the mixins record types build on.
"""

from genrepo.models.base import (
    Base,
    BaseModel,
    IdentifierMixin,
    SerializationMixin,
    TimestampMixin,
)

__all__ = [
    "Base",
    "BaseModel",
    "IdentifierMixin",
    "SerializationMixin",
    "TimestampMixin",
]
