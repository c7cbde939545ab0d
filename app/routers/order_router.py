# app/routers/order_router.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Literal, Optional

from app.services.order_service import OrderService
from app.schemas.common_schema import ApiResponse
from app.schemas.order_schema import OrderCreate, OrderUpdate, OrderOut, OrderList

from app.models.user import User
from app.core.security import get_current_user
from app.core.database import get_db

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post(
    "",
    response_model=ApiResponse[OrderOut],
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
)
async def api_create_order(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user)
):
    """
    (Buyer) Place an order on a seller's gig.

    With a `paymentScreenshot` the order starts in *Payment pending verify*,
    otherwise in *Pending payment*.
    """
    order = await service.create_order(order_data, current_user)
    return ApiResponse(message="Order created successfully", data=OrderOut.model_validate(order))


@router.get(
    "",
    response_model=ApiResponse[OrderList],
    summary="List my orders",
)
async def api_list_my_orders(
    role: Optional[Literal["buyer", "seller"]] = Query(None),
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user)
):
    """
    Orders I bought (`role=buyer`), sold (`role=seller`) or both.
    Sellers never see orders whose payment is not verified yet.
    """
    orders = await service.list_my_orders(current_user, role)
    return ApiResponse(data=OrderList(orders=[OrderOut.model_validate(o) for o in orders]))


@router.get(
    "/withdrawal-eligible",
    response_model=ApiResponse[OrderList],
    summary="Completed orders I can request a withdrawal for",
)
async def api_list_withdrawal_eligible(
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user)
):
    orders = await service.list_withdrawal_eligible(current_user)
    return ApiResponse(data=OrderList(orders=[OrderOut.model_validate(o) for o in orders]))


@router.get(
    "/{order_id}",
    response_model=ApiResponse[OrderOut],
    summary="Order details",
)
async def api_get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user)
):
    order = await service.get_order(order_id, current_user)
    return ApiResponse(data=OrderOut.model_validate(order))


@router.put(
    "/{order_id}",
    response_model=ApiResponse[OrderOut],
    summary="Update an order",
)
async def api_update_order(
    order_id: str,
    update_data: OrderUpdate,
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user)
):
    """
    (Buyer / seller) Only `requirements`, `paymentScreenshot`, `status` and
    `confirmCompletion` are accepted; who may set what depends on the
    caller's side of the order and its current status.
    """
    order = await service.update_order(order_id, update_data, current_user)
    return ApiResponse(message="Order updated successfully", data=OrderOut.model_validate(order))


@router.post(
    "/{order_id}/withdrawal",
    response_model=ApiResponse[OrderOut],
    summary="Request a withdrawal",
)
async def api_request_withdrawal(
    order_id: str,
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user)
):
    """(Seller) Ask an admin to pay out a completed order."""
    order = await service.request_withdrawal(order_id, current_user)
    return ApiResponse(message="Withdrawal request submitted successfully", data=OrderOut.model_validate(order))
