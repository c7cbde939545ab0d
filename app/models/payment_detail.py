# app/models/payment_detail.py

import uuid
from sqlalchemy import Column, String, ForeignKey, CHAR
from sqlalchemy.orm import relationship
from app.core.database import Base, PreciseDateTime
from app.utils.clock import utcnow

class PaymentDetail(Base):
    __tablename__ = "payment_details"

    payment_detail_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # one row per user, saves are upserts
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    payment_method = Column(String(50), nullable=False)
    account_number = Column(String(100), nullable=False)
    account_holder_name = Column(String(255), nullable=False)
    bank_account_name = Column(String(255), default="")
    bank_name = Column(String(255), default="")
    branch_code = Column(String(50), default="")
    iban_number = Column(String(64), default="")

    created_at = Column(PreciseDateTime, default=utcnow)
    updated_at = Column(PreciseDateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", lazy="selectin")
