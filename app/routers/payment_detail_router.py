# app/routers/payment_detail_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.common_schema import ApiResponse
from app.schemas.payment_detail_schema import PaymentDetailOut, PaymentDetailSave
from app.services.payment_detail_service import PaymentDetailService

router = APIRouter(
    prefix="/payment-details",
    tags=["Payment Details"]
)


def get_payment_detail_service(db: AsyncSession = Depends(get_db)) -> PaymentDetailService:
    return PaymentDetailService(db)


# declared before /{user_id} so "admin" is not taken for a user id
@router.get("/admin", response_model=ApiResponse[PaymentDetailOut])
async def get_admin_payment_details(
    service: PaymentDetailService = Depends(get_payment_detail_service),
):
    """Public: the account buyers should transfer to"""
    detail = await service.get_admin_details()
    return ApiResponse(data=PaymentDetailOut.model_validate(detail))


@router.get("/{user_id}", response_model=ApiResponse[PaymentDetailOut])
async def get_payment_details(
    user_id: str,
    service: PaymentDetailService = Depends(get_payment_detail_service),
    current_user: User = Depends(get_current_user),
):
    detail = await service.get_for_user(user_id, current_user)
    return ApiResponse(data=PaymentDetailOut.model_validate(detail))


@router.post("", response_model=ApiResponse[PaymentDetailOut])
async def save_payment_details(
    body: PaymentDetailSave,
    service: PaymentDetailService = Depends(get_payment_detail_service),
    current_user: User = Depends(get_current_user),
):
    detail = await service.save(current_user, body)
    return ApiResponse(message="Payment details saved successfully", data=PaymentDetailOut.model_validate(detail))
