# app/services/admin_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.core.exceptions import AuthorizationError
from app.models.user import User, UserRoleEnum
from app.repositories.gig_repo import GigRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.payment_detail_repo import PaymentDetailRepository
from app.repositories.user_repo import UserRepository
from app.schemas.admin_schema import DashboardStats
from app.schemas.payment_detail_schema import PaymentDetailOut, PaymentDetailWithOwner
from app.schemas.user_schema import UserLogin
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.order_repo = OrderRepository(db)
        self.gig_repo = GigRepository(db)
        self.payment_detail_repo = PaymentDetailRepository(db)
        self.auth_service = AuthService(db)

    async def login(self, credentials: UserLogin) -> User:
        user = await self.auth_service.authenticate_user(
            credentials.email, credentials.phone, credentials.password
        )
        if user.role != UserRoleEnum.admin:
            logger.warning(f"Non-admin {user.user_id} attempted admin login")
            raise AuthorizationError("Access denied. Admin privileges required.")
        logger.info(f"Admin logged in: {user.user_id}")
        return user

    async def dashboard_stats(self) -> DashboardStats:
        return DashboardStats(
            total_clients=await self.user_repo.count_by_role(UserRoleEnum.client),
            total_sellers=await self.user_repo.count_by_role(UserRoleEnum.freelancer),
            total_gigs=await self.gig_repo.count_gigs(),
            total_orders=await self.order_repo.count_orders(),
        )

    async def list_clients(self) -> List[User]:
        return await self.user_repo.list_by_role(UserRoleEnum.client)

    async def list_payment_details(self) -> List[PaymentDetailWithOwner]:
        rows = []
        for detail in await self.payment_detail_repo.list_all():
            owner = detail.user
            rows.append(PaymentDetailWithOwner(
                **PaymentDetailOut.model_validate(detail).model_dump(),
                owner_name=owner.name if owner else None,
                owner_email=owner.email if owner else None,
                owner_role=owner.role.value if owner else None,
            ))
        return rows
