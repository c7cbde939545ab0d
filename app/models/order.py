# app/models/order.py

import enum
import uuid
from sqlalchemy import (
    Column, String, TEXT, DECIMAL, INT, Boolean, ForeignKey, Enum, CHAR
)
from app.core.database import Base, PreciseDateTime
from app.utils.clock import utcnow


class OrderStatusEnum(str, enum.Enum):
    # Declaration order is lifecycle order
    pending_payment = "Pending payment"
    payment_pending_verify = "Payment pending verify"
    payment_confirmed = "Payment confirmed"
    in_progress = "In progress"
    delivered = "Delivered"
    completed = "Completed"


class WithdrawalStatusEnum(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # --- Parties ---
    gig_id = Column(CHAR(36), nullable=False, index=True)  # logical reference
    gig_title = Column(String(255), nullable=False, default="Gig Order")
    buyer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    buyer_name = Column(String(100))
    seller_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    seller_name = Column(String(100))

    # --- Order content ---
    package = Column(String(50), nullable=False, default="standard")
    amount = Column(DECIMAL(10, 2), nullable=False)
    requirements = Column(TEXT, default="")
    delivery_time = Column(INT, default=0)  # days

    # --- Payment / fulfillment ---
    status = Column(
        Enum(OrderStatusEnum, values_callable=_enum_values, name="order_status_enum"),
        nullable=False,
        default=OrderStatusEnum.pending_payment,
        index=True,
    )
    payment_screenshot = Column(String(500))
    payment_uploaded_at = Column(PreciseDateTime)
    payment_verified_at = Column(PreciseDateTime)
    completed_at = Column(PreciseDateTime)
    client_confirmed_completion_at = Column(PreciseDateTime)

    # --- Withdrawal sub-state ---
    withdrawal_requested = Column(Boolean, nullable=False, default=False)
    withdrawal_status = Column(
        Enum(WithdrawalStatusEnum, values_callable=_enum_values, name="withdrawal_status_enum"),
        nullable=True,
    )
    withdrawal_requested_at = Column(PreciseDateTime)
    withdrawal_processed_at = Column(PreciseDateTime)

    created_at = Column(PreciseDateTime, default=utcnow)
    updated_at = Column(PreciseDateTime, default=utcnow, onupdate=utcnow)

