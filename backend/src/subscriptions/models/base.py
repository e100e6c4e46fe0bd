"""Base model with common fields for all entities."""
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Uuid

from subscriptions.database import Base as DeclarativeBase
from subscriptions.utils.temporal import utcnow


class Base(DeclarativeBase):
    """Base model class with common fields."""

    __abstract__ = True

    id = Column(Uuid, primary_key=True, default=uuid4, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_modified_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class ModifiedByMixin:
    """Who created and who last changed a row."""

    created_by = Column(String, nullable=False)
    last_modified_by = Column(String, nullable=False)
