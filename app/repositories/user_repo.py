# app/repositories/user_repo.py
# Database access for user accounts
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.user import User, UserRoleEnum

class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: str) -> User | None:
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_user_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.lower())
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_user_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username.lower())
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_by_email_or_phone(
        self, email: Optional[str] = None, phone: Optional[str] = None
    ) -> User | None:
        """
        Login / duplicate lookup: match on whichever identifiers were supplied
        """
        conditions = []
        if email:
            conditions.append(User.email == email.strip().lower())
        if phone:
            conditions.append(User.phone == phone.strip())
        if not conditions:
            return None
        stmt = select(User).where(or_(*conditions))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_first_by_role(self, role: UserRoleEnum) -> User | None:
        stmt = select(User).where(User.role == role).order_by(User.created_at)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_by_role(self, role: UserRoleEnum) -> List[User]:
        stmt = select(User).where(User.role == role).order_by(User.created_at.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def count_by_role(self, role: UserRoleEnum) -> int:
        stmt = select(func.count()).select_from(User).where(User.role == role)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def create_user(self, user: User) -> User:
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update_user(self, user: User) -> User:
        """Persist changes the service made on a loaded User"""
        await self.db.commit()
        await self.db.refresh(user)
        return user
