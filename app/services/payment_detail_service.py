# app/services/payment_detail_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from app.core.exceptions import AuthorizationError, InternalError, NotFoundError
from app.models.payment_detail import PaymentDetail
from app.models.user import User, UserRoleEnum
from app.repositories.payment_detail_repo import PaymentDetailRepository
from app.repositories.user_repo import UserRepository
from app.schemas.payment_detail_schema import PaymentDetailSave

logger = logging.getLogger(__name__)


class PaymentDetailService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = PaymentDetailRepository(db)
        self.user_repo = UserRepository(db)

    async def save(self, user: User, data: PaymentDetailSave) -> PaymentDetail:
        values = data.model_dump()
        for key in ("bank_account_name", "bank_name", "branch_code", "iban_number"):
            values[key] = (values[key] or "").strip()

        try:
            detail = await self.repo.upsert(user.user_id, values)
            await self.db.commit()
        except IntegrityError:
            # a concurrent first save inserted the row; overwrite it instead
            await self.db.rollback()
            detail = await self.repo.upsert(user.user_id, values)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Saving payment details failed for {user.user_id}: {e}", exc_info=True)
            raise InternalError("Failed to save payment details")

        await self.db.refresh(detail)
        logger.info(f"Payment details saved for {user.user_id}")
        return detail

    async def get_for_user(self, user_id: str, requester: User) -> PaymentDetail:
        if requester.user_id != user_id and requester.role != UserRoleEnum.admin:
            raise AuthorizationError("You are not authorized to view these payment details")
        detail = await self.repo.get_by_user_id(user_id)
        if not detail:
            raise NotFoundError("Payment details not found")
        return detail

    async def get_admin_details(self) -> PaymentDetail:
        """Where buyers transfer money to: the admin account's details."""
        admin = await self.user_repo.get_first_by_role(UserRoleEnum.admin)
        if not admin:
            raise NotFoundError("Admin account not found")
        detail = await self.repo.get_by_user_id(admin.user_id)
        if not detail:
            raise NotFoundError("Admin payment details not configured")
        return detail
