"""User lookup and registration."""
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.errors import NotFound
from subscriptions.models.user import User

logger = structlog.get_logger(__name__)


class UserService:
    """Service layer for user operations."""

    def __init__(self, db: AsyncSession):
        """Initialize user service with database session."""
        self.db = db

    async def get_user(self, user_id: UUID) -> User:
        """
        Get user by ID.

        Raises:
            NotFound: If the user does not exist
        """
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFound("user", user_id)
        return user

    async def get_user_by_username(self, username: str) -> User | None:
        """Get user by username, or None if the username has never been seen."""
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_or_create(self, username: str) -> User:
        """
        Get the user with the given username, registering it on first sight.

        Args:
            username: Already-authenticated username

        Returns:
            Existing or newly created user
        """
        user = await self.get_user_by_username(username)
        if user:
            return user

        user = User(username=username)
        self.db.add(user)
        await self.db.flush()

        logger.info("user_registered", user_id=str(user.id), username=username)
        return user
