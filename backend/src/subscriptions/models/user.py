"""User model for subscription owners."""
from sqlalchemy import Column, String

from subscriptions.models.base import Base


class User(Base):
    """A user that can hold subscriptions. Identified externally by username."""

    __tablename__ = "users"

    username = Column(String, nullable=False, unique=True, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, username={self.username})>"
