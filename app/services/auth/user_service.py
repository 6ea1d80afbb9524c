import logging
from typing import List, Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.models.auth.user import User

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        result = await self.session.execute(
            select(User).where(
                User.id == user_id,
                User.is_deleted == False
            )
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(
                User.email == email,
                User.is_deleted == False
            )
        )
        return result.scalar_one_or_none()

    async def get_active_user_ids(self, user_ids: List[int]) -> Set[int]:
        """Subset of the given ids that belong to active users"""
        if not user_ids:
            return set()
        result = await self.session.execute(
            select(User.id).where(
                User.id.in_(user_ids),
                User.is_active == True,
                User.is_deleted == False
            )
        )
        return set(result.scalars().all())
