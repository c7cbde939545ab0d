# app/routers/admin_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.security import get_current_admin
from app.models.order import WithdrawalStatusEnum
from app.models.user import User
from app.schemas.admin_schema import ClientList, DashboardStats
from app.schemas.common_schema import ApiResponse
from app.schemas.order_schema import (
    OrderHistoryOut, OrderOut, PaymentVerification, PendingVerificationOut,
    WithdrawalAction, WithdrawalRequestOut,
)
from app.schemas.payment_detail_schema import PaymentDetailWithOwner
from app.schemas.user_schema import AuthPayload, UserLogin, UserOut
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService
from app.services.order_service import OrderService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"]
)


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post("/login", response_model=ApiResponse[AuthPayload])
async def admin_login(
    credentials: UserLogin,
    service: AdminService = Depends(get_admin_service),
):
    admin = await service.login(credentials)
    token = AuthService(service.db).create_login_token(admin)
    return ApiResponse(
        message="Admin login successful",
        data=AuthPayload(user=UserOut.model_validate(admin), token=token),
    )


@router.get("/dashboard-stats", response_model=ApiResponse[DashboardStats])
async def dashboard_stats(
    service: AdminService = Depends(get_admin_service),
    admin: User = Depends(get_current_admin),
):
    return ApiResponse(data=await service.dashboard_stats())


@router.get("/clients", response_model=ApiResponse[ClientList])
async def list_clients(
    service: AdminService = Depends(get_admin_service),
    admin: User = Depends(get_current_admin),
):
    clients = await service.list_clients()
    return ApiResponse(data=ClientList(clients=[UserOut.model_validate(c) for c in clients]))


@router.get("/payment-details", response_model=ApiResponse[List[PaymentDetailWithOwner]])
async def list_payment_details(
    service: AdminService = Depends(get_admin_service),
    admin: User = Depends(get_current_admin),
):
    return ApiResponse(data=await service.list_payment_details())


# --- Orders ---

@router.get(
    "/orders/pending-verification",
    response_model=ApiResponse[List[PendingVerificationOut]],
)
async def list_pending_verification(
    service: OrderService = Depends(get_order_service),
    admin: User = Depends(get_current_admin),
):
    """Orders waiting for a payment check, with buyer and seller contact info"""
    return ApiResponse(data=await service.list_pending_verification())


@router.get("/orders/history", response_model=ApiResponse[List[OrderHistoryOut]])
async def list_order_history(
    service: OrderService = Depends(get_order_service),
    admin: User = Depends(get_current_admin),
):
    return ApiResponse(data=await service.list_order_history())


@router.post("/orders/{order_id}/verify-payment", response_model=ApiResponse[OrderOut])
async def verify_payment(
    order_id: str,
    body: PaymentVerification,
    service: OrderService = Depends(get_order_service),
    admin: User = Depends(get_current_admin),
):
    """
    `verified: true` confirms the payment and releases the order to the
    seller. `verified: false` leaves the order in *Payment pending verify*.
    """
    order = await service.verify_payment(order_id, body.verified, admin)
    message = "Payment verified successfully" if body.verified else "Payment rejected"
    return ApiResponse(message=message, data=OrderOut.model_validate(order))


# --- Withdrawals ---

@router.get("/withdrawals", response_model=ApiResponse[List[WithdrawalRequestOut]])
async def list_withdrawals(
    status: Optional[WithdrawalStatusEnum] = Query(None),
    service: OrderService = Depends(get_order_service),
    admin: User = Depends(get_current_admin),
):
    return ApiResponse(data=await service.list_withdrawal_requests(status))


@router.post("/withdrawals/{order_id}/process", response_model=ApiResponse[OrderOut])
async def process_withdrawal(
    order_id: str,
    body: WithdrawalAction,
    service: OrderService = Depends(get_order_service),
    admin: User = Depends(get_current_admin),
):
    order = await service.process_withdrawal(order_id, body.action, admin)
    return ApiResponse(
        message=f"Withdrawal {body.action}d successfully",
        data=OrderOut.model_validate(order),
    )
