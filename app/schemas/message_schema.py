# app/schemas/message_schema.py

from pydantic import Field, field_validator
from typing import List, Optional
from datetime import datetime

from app.models.message import SenderTypeEnum
from app.schemas.common_schema import CamelModel


class Attachment(CamelModel):
    name: Optional[str] = None
    url: str
    type: Optional[str] = None


class MessageOut(CamelModel):
    message_id: str
    order_id: str
    sender_id: str
    sender_name: str
    sender_avatar: Optional[str] = None
    sender_type: SenderTypeEnum
    text: str
    attachments: List[Attachment] = []
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class MessageIn(CamelModel):
    """
    Body of POST /chat/messages and data of the realtime `send_message` event
    """
    order_id: str = Field(..., min_length=1)
    text: str = Field(..., description="Message text")
    attachments: List[Attachment] = []

    @field_validator('text')
    @classmethod
    def text_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Message text is required')
        return v


class JoinOrder(CamelModel):
    """Data of the realtime `join_order` event"""
    order_id: str = Field(..., min_length=1)


class MessageList(CamelModel):
    messages: List[MessageOut]
