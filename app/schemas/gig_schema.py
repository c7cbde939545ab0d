# app/schemas/gig_schema.py
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from app.schemas.common_schema import CamelModel
from app.schemas.order_schema import MAX_AMOUNT


class GigCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: float = Field(..., gt=0, lt=MAX_AMOUNT)
    delivery_time: int = Field(0, ge=0)


class GigOut(CamelModel):
    gig_id: str
    seller_id: str
    title: str
    description: Optional[str] = None
    price: float
    delivery_time: int
    created_at: Optional[datetime] = None


class GigList(CamelModel):
    gigs: List[GigOut]
