"""
Users service - lifecycle operations for user records
"""

import logging
from typing import List, Optional

from database.repository import UserRepository
from models.user import User, UserCreateRequest, UserUpdateRequest
from services.exceptions import UserNotFoundError

logger = logging.getLogger(__name__)


class UserService:
    """Create, read, update and delete users through an injected repository"""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def list_users(self) -> List[User]:
        rows = await self.repository.find_all()
        return [User(**row) for row in rows]

    async def get_user(self, user_id: int) -> Optional[User]:
        """Get a user by ID, None when it does not exist"""
        row = await self.repository.find_by_id(user_id)
        return User(**row) if row else None

    async def create_user(self, payload: UserCreateRequest) -> User:
        """
        Create a new user

        The ID is always generated by the database.
        """
        row = await self.repository.save(payload.model_dump())
        user = User(**row)
        logger.info(f"Created user {user.id}")
        return user

    async def update_user(self, user_id: int, payload: UserUpdateRequest) -> User:
        """
        Apply the fields present in payload to an existing user

        Raises:
            UserNotFoundError: no user with this ID
        """
        existing = await self.repository.find_by_id(user_id)
        if not existing:
            logger.warning(f"Update requested for missing user {user_id}")
            raise UserNotFoundError(user_id)

        changes = payload.model_dump(exclude_unset=True)
        row = await self.repository.merge_and_save(existing, changes)
        if not row:
            # Deleted between load and save
            raise UserNotFoundError(user_id)

        logger.info(f"Updated user {user_id}: {sorted(changes)}")
        return User(**row)

    async def delete_user(self, user_id: int) -> User:
        """
        Permanently remove a user, returning the removed record

        Raises:
            UserNotFoundError: no user with this ID
        """
        existing = await self.repository.find_by_id(user_id)
        if not existing:
            logger.warning(f"Delete requested for missing user {user_id}")
            raise UserNotFoundError(user_id)

        deleted_count = await self.repository.remove(existing)
        if deleted_count == 0:
            raise UserNotFoundError(user_id)

        logger.info(f"Deleted user {user_id}")
        return User(**existing)
