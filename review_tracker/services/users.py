"""User directory service."""

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User, new_id
from .errors import UserNotFoundError, ValidationError

logger = logging.getLogger(__name__)

AVATAR_URL_TEMPLATE = "https://i.pravatar.cc/150?u={user_id}"


class UserService:
    """CRUD for users.

    Deleting a user does not touch reviews, assignments, comments or logs
    that reference it; those render as an unknown user afterwards.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_users(self) -> Sequence[User]:
        result = await self._session.execute(select(User).order_by(User.name, User.id))
        return result.scalars().all()

    async def get_user(self, user_id: str) -> User:
        user = await self._session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def create_user(
        self,
        name: str,
        avatar_url: str | None = None,
        user_id: str | None = None,
    ) -> User:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name is required")

        user_id = user_id or new_id()
        if await self._session.get(User, user_id) is not None:
            raise ValidationError(f"User {user_id} already exists")

        user = User(
            id=user_id,
            name=name,
            avatar_url=avatar_url or AVATAR_URL_TEMPLATE.format(user_id=user_id),
        )
        self._session.add(user)
        await self._session.flush()
        logger.info(f"Created user {user.id} ({name})")
        return user

    async def update_user(
        self,
        user_id: str,
        name: str | None = None,
        avatar_url: str | None = None,
    ) -> User:
        """Partial update; fields left as None keep their value."""
        user = await self.get_user(user_id)
        if name is not None:
            if not name.strip():
                raise ValidationError("name must not be blank")
            user.name = name.strip()
        if avatar_url is not None:
            user.avatar_url = avatar_url
        await self._session.flush()
        return user

    async def delete_user(self, user_id: str) -> None:
        user = await self.get_user(user_id)
        await self._session.delete(user)
        await self._session.flush()
        logger.info(f"Deleted user {user_id}")
