# app/services/gig_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from app.core.exceptions import AuthorizationError, NotFoundError
from app.models.gig import Gig
from app.models.user import User, UserRoleEnum
from app.repositories.gig_repo import GigRepository
from app.schemas.gig_schema import GigCreate

logger = logging.getLogger(__name__)


class GigService:
    def __init__(self, db: AsyncSession):
        self.repo = GigRepository(db)

    async def create_gig(self, data: GigCreate, user: User) -> Gig:
        if user.role != UserRoleEnum.freelancer:
            raise AuthorizationError("Only freelancers can create gigs")
        gig = Gig(
            seller_id=user.user_id,
            title=data.title.strip(),
            description=data.description or "",
            price=data.price,
            delivery_time=data.delivery_time,
        )
        gig = await self.repo.create_gig(gig)
        logger.info(f"Gig {gig.gig_id} created by {user.user_id}")
        return gig

    async def list_gigs(self, seller_id: Optional[str] = None) -> List[Gig]:
        return await self.repo.list_gigs(seller_id)

    async def get_gig(self, gig_id: str) -> Gig:
        gig = await self.repo.get_gig_by_id(gig_id)
        if not gig:
            raise NotFoundError("Gig not found")
        return gig
