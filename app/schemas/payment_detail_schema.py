# app/schemas/payment_detail_schema.py
from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime

from app.schemas.common_schema import CamelModel


class PaymentDetailSave(CamelModel):
    payment_method: str = Field(..., max_length=50)
    account_number: str = Field(..., max_length=100)
    account_holder_name: str = Field(..., max_length=255)
    bank_account_name: Optional[str] = Field(None, max_length=255)
    bank_name: Optional[str] = Field(None, max_length=255)
    branch_code: Optional[str] = Field(None, max_length=50)
    iban_number: Optional[str] = Field(None, max_length=64)

    @field_validator('payment_method', 'account_number', 'account_holder_name')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Payment method, account number, and account holder name are required')
        return v


class PaymentDetailOut(CamelModel):
    payment_detail_id: str
    user_id: str
    payment_method: str
    account_number: str
    account_holder_name: str
    bank_account_name: Optional[str] = ""
    bank_name: Optional[str] = ""
    branch_code: Optional[str] = ""
    iban_number: Optional[str] = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentDetailWithOwner(PaymentDetailOut):
    """Admin listing: the details plus who they belong to"""
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    owner_role: Optional[str] = None
