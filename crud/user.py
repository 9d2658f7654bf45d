"""
UserRepository for database operations on User model
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import User


class UserRepository:
    """
    Repository class for User database operations.
    Encapsulates all database logic for the User model.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve a user by email address (case-insensitive).
        """
        result = await self.db.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_user(self, user_data: dict) -> User:
        """
        Create a new user in the database.

        Args:
            user_data: Dictionary containing user data. Must include:
                - email: str
                - hashed_password: str
                Optional:
                - is_active: bool (defaults to True)
                - role: str (defaults to "owner")
                - restaurant_id: int
                - created_at: datetime (defaults to now)

        Returns:
            Created User object
        """
        user = User(
            email=user_data["email"].lower(),
            hashed_password=user_data["hashed_password"],
            is_active=user_data.get("is_active", True),
            role=user_data.get("role", "owner"),
            restaurant_id=user_data.get("restaurant_id"),
        )
        if user_data.get("created_at"):
            user.created_at = user_data["created_at"]
        self.db.add(user)
        await self.db.flush()  # Flush to get the ID without committing
        await self.db.refresh(user)
        return user

    async def update_user(self, user: User, updates: dict) -> User:
        """
        Update user fields. created_at is the trial start and is never changed here.
        """
        for key, value in updates.items():
            if key == "created_at":
                continue
            if hasattr(user, key):
                setattr(user, key, value)

        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def activate_plan(self, user: User, plan_name: str, started_at: datetime) -> User:
        return await self.update_user(user, {"plan_name": plan_name, "plan_started_at": started_at})
