# app/repositories/gig_repo.py
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional

from app.models.gig import Gig


class GigRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_gig(self, gig: Gig) -> Gig:
        self.db.add(gig)
        await self.db.commit()
        await self.db.refresh(gig)
        return gig

    async def get_gig_by_id(self, gig_id: str) -> Optional[Gig]:
        stmt = select(Gig).where(Gig.gig_id == gig_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_gigs(self, seller_id: Optional[str] = None) -> List[Gig]:
        stmt = select(Gig)
        if seller_id:
            stmt = stmt.where(Gig.seller_id == seller_id)
        result = await self.db.execute(stmt.order_by(Gig.created_at.desc()))
        return result.scalars().all()

    async def count_gigs(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Gig))
        return result.scalar_one()
