# app/schemas/order_schema.py

from pydantic import ConfigDict, Field
from typing import List, Literal, Optional
from datetime import datetime

from app.models.order import OrderStatusEnum, WithdrawalStatusEnum
from app.schemas.common_schema import CamelModel
from app.schemas.payment_detail_schema import PaymentDetailOut


# DECIMAL(10, 2)
MAX_AMOUNT = 100_000_000


# --- 1. Create order (Input) ---
# seller_id and amount are optional here so that a missing value is reported
# by the service as a ValidationError with a readable message.
class OrderCreate(CamelModel):
    gig_id: str = Field(..., min_length=1, max_length=36)
    gig_title: Optional[str] = Field(None, max_length=255)
    seller_id: Optional[str] = Field(None, max_length=36)
    seller_name: Optional[str] = Field(None, max_length=100)
    buyer_name: Optional[str] = Field(None, max_length=100)
    package: Optional[str] = Field(None, max_length=50)
    amount: Optional[float] = Field(None, lt=MAX_AMOUNT)
    requirements: Optional[str] = None
    delivery_time: Optional[int] = Field(None, ge=0)
    payment_screenshot: Optional[str] = Field(None, max_length=500)


# --- 2. Update order (Input) ---
# The only fields either party may touch; the service decides who may set what.
class OrderUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    requirements: Optional[str] = None
    payment_screenshot: Optional[str] = Field(None, max_length=500)
    status: Optional[OrderStatusEnum] = None
    confirm_completion: Optional[bool] = None


# --- 3. Admin actions (Input) ---
class PaymentVerification(CamelModel):
    verified: bool


class WithdrawalAction(CamelModel):
    action: Literal["approve", "reject"]


# --- 4. Full order (Output) ---
class OrderOut(CamelModel):
    order_id: str
    gig_id: str
    gig_title: str
    buyer_id: str
    buyer_name: Optional[str] = None
    seller_id: str
    seller_name: Optional[str] = None
    package: str
    amount: float
    requirements: Optional[str] = None
    delivery_time: Optional[int] = None
    status: OrderStatusEnum
    payment_screenshot: Optional[str] = None
    payment_uploaded_at: Optional[datetime] = None
    payment_verified_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    client_confirmed_completion_at: Optional[datetime] = None
    withdrawal_requested: bool = False
    withdrawal_status: Optional[WithdrawalStatusEnum] = None
    withdrawal_requested_at: Optional[datetime] = None
    withdrawal_processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderList(CamelModel):
    orders: List[OrderOut]


# --- 5. Admin read-side rows ---
class PartySummary(CamelModel):
    """User identity as shown in admin listings; placeholder when unresolved."""
    user_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class PendingVerificationOut(OrderOut):
    seller: PartySummary
    buyer: PartySummary


class OrderHistoryOut(OrderOut):
    seller_completed: bool
    client_confirmed: bool


class WithdrawalRequestOut(OrderOut):
    seller: PartySummary
    seller_payment_details: Optional[PaymentDetailOut] = None
