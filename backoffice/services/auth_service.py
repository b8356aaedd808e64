"""
POS Back Office - Authentication Service

Business logic for user authentication.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.models.base import utcnow
from backoffice.models.company import Company
from backoffice.models.user import User
from backoffice.utils.security import create_access_token, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_login(self, login: str) -> Optional[User]:
        """Get user by username or email address."""
        value = login.strip().lower()
        result = await self.db.execute(
            select(User).where(
                or_(func.lower(User.username) == value, func.lower(User.email) == value)
            )
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID."""
        return await self.db.get(User, user_id)

    async def authenticate_user(self, login: str, password: str) -> Optional[User]:
        """
        Authenticate user with username (or email) and password.

        Returns:
            User if authentication successful, None otherwise
        """
        user = await self.get_user_by_login(login)

        if not user:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    async def record_login(self, user: User) -> None:
        user.last_login_at = utcnow()
        await self.db.flush()
        logger.info(f"User {user.username} logged in")

    def create_token(self, user: User) -> str:
        return create_access_token(
            data={
                "sub": str(user.id),
                "username": user.username,
                "company_id": str(user.company_id) if user.company_id else None,
            }
        )

    @property
    def token_lifetime_seconds(self) -> int:
        return settings.access_token_expire_minutes * 60

    async def get_company(self, company_id: uuid.UUID) -> Optional[Company]:
        return await self.db.get(Company, company_id)
