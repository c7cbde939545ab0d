# app/models/message.py

import enum
import uuid
from sqlalchemy import Column, String, Text, ForeignKey, CHAR, Boolean, Enum, JSON
from app.core.database import Base, PreciseDateTime
from app.utils.clock import utcnow


class SenderTypeEnum(str, enum.Enum):
    buyer = "buyer"
    seller = "seller"


class Message(Base):
    __tablename__ = "messages"
    message_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Orders are never deleted, so RESTRICT never fires in practice
    order_id = Column(CHAR(36), ForeignKey("orders.order_id", ondelete="RESTRICT"), nullable=False, index=True)
    sender_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    sender_name = Column(String(100), nullable=False)
    sender_avatar = Column(String(500))
    sender_type = Column(
        Enum(SenderTypeEnum, values_callable=lambda obj: [e.value for e in obj], name="sender_type_enum"),
        nullable=False,
    )
    text = Column(Text, nullable=False)
    attachments = Column(JSON, default=list)  # [{"name", "url", "type"}]
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(PreciseDateTime)
    created_at = Column(PreciseDateTime, default=utcnow, index=True)

