"""
用户数据访问
"""
from typing import Optional
from sqlalchemy import select, exists
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserRepository:
    """用户仓储：按邮箱查询、判重、保存"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        result = await self.db.execute(select(exists().where(User.email == email)))
        return bool(result.scalar())

    async def save(self, user: User) -> User:
        """保存用户并立即 flush，使唯一约束冲突在调用处暴露"""
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user
