# app/repositories/order_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func, update
from sqlalchemy.sql.expression import or_
from typing import Any, Dict, List, Optional

from app.models.order import Order, OrderStatusEnum, WithdrawalStatusEnum
from app.utils.clock import utcnow


class OrderRepository:
    """
    CRUD on the 'orders' table.

    State changes never go through "load, mutate, commit": they are issued as
    conditional UPDATEs via transition(), so two concurrent requests cannot
    both apply a transition from the same source state.
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_order(self, order: Order) -> Order:
        self.db.add(order)
        await self.db.commit()
        await self.db.refresh(order)
        return order

    async def get_order_by_id(self, order_id: str) -> Optional[Order]:
        # populate_existing: a long-lived session (websocket) must still see
        # transitions committed by other sessions
        stmt = (
            select(Order)
            .where(Order.order_id == order_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def transition(
        self,
        order_id: str,
        values: Dict[str, Any],
        *conditions,
    ) -> bool:
        """
        (U) Compare-and-set update.
        Applies `values` only if the row still matches every condition
        (typically Order.status == expected). Returns False when no row
        matched. Does not commit.
        """
        stmt = (
            update(Order)
            .where(Order.order_id == order_id, *conditions)
            .values(**values, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def list_orders_by_buyer(self, buyer_id: str) -> List[Order]:
        stmt = (
            select(Order)
            .where(Order.buyer_id == buyer_id)
            .order_by(Order.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_orders_by_seller(self, seller_id: str) -> List[Order]:
        """
        Seller queue. Orders whose payment is still waiting for the admin are
        excluded here, in the query itself.
        """
        stmt = (
            select(Order)
            .where(
                Order.seller_id == seller_id,
                Order.status != OrderStatusEnum.payment_pending_verify,
            )
            .order_by(Order.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_withdrawal_eligible(self, seller_id: str) -> List[Order]:
        stmt = (
            select(Order)
            .where(
                Order.seller_id == seller_id,
                Order.status == OrderStatusEnum.completed,
                Order.withdrawal_requested.is_(False),
                or_(
                    Order.withdrawal_status.is_(None),
                    Order.withdrawal_status == WithdrawalStatusEnum.rejected,
                ),
            )
            .order_by(Order.completed_at.desc(), Order.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    # --- Admin queries ---

    async def list_by_status(self, status: OrderStatusEnum) -> List[Order]:
        stmt = (
            select(Order)
            .where(Order.status == status)
            .order_by(Order.payment_uploaded_at.desc(), Order.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_history(self) -> List[Order]:
        stmt = (
            select(Order)
            .where(
                or_(
                    Order.status == OrderStatusEnum.completed,
                    Order.completed_at.is_not(None),
                    Order.client_confirmed_completion_at.is_not(None),
                )
            )
            .order_by(Order.updated_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_withdrawals(
        self, status: Optional[WithdrawalStatusEnum] = None
    ) -> List[Order]:
        stmt = select(Order).where(Order.withdrawal_status.is_not(None))
        if status is not None:
            stmt = stmt.where(Order.withdrawal_status == status)
        stmt = stmt.order_by(Order.withdrawal_requested_at.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def count_orders(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Order))
        return result.scalar_one()
