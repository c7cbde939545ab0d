# app/repositories/payment_detail_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional

from app.models.payment_detail import PaymentDetail


class PaymentDetailRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user_id(self, user_id: str) -> Optional[PaymentDetail]:
        stmt = select(PaymentDetail).where(PaymentDetail.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_all(self) -> List[PaymentDetail]:
        # PaymentDetail.user is selectin-loaded
        stmt = select(PaymentDetail).order_by(PaymentDetail.updated_at.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def upsert(self, user_id: str, values: dict) -> PaymentDetail:
        """
        Insert or overwrite the single row for user_id.
        Commit is left to the caller so it can handle a unique-key race.
        """
        detail = await self.get_by_user_id(user_id)
        if detail is None:
            detail = PaymentDetail(user_id=user_id, **values)
            self.db.add(detail)
        else:
            for key, value in values.items():
                setattr(detail, key, value)
        await self.db.flush()
        return detail
