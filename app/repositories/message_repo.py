# app/repositories/message_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, update
from typing import List, Optional
import uuid

from app.models.message import Message, SenderTypeEnum
from app.utils.clock import utcnow

class MessageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_messages_by_order_id(self, order_id: str) -> List[Message]:
        """Full thread, oldest first"""
        stmt = (
            select(Message)
            .where(Message.order_id == order_id)
            .order_by(Message.created_at.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def save_message(
        self,
        order_id: str,
        sender_id: str,
        sender_name: str,
        sender_avatar: Optional[str],
        sender_type: SenderTypeEnum,
        text: str,
        attachments: Optional[List[dict]] = None,
    ) -> Message:
        # flush only, the service owns the commit
        new_message = Message(
            message_id=str(uuid.uuid4()),
            order_id=order_id,
            sender_id=sender_id,
            sender_name=sender_name,
            sender_avatar=sender_avatar,
            sender_type=sender_type,
            text=text,
            attachments=attachments or [],
            is_read=False,
        )
        self.db.add(new_message)
        await self.db.flush()
        await self.db.refresh(new_message)
        return new_message

    async def mark_messages_as_read(self, order_id: str, reader_id: str) -> int:
        """
        Bulk read-receipt: every unread message in the thread that the
        reader did not write. Returns the number of rows touched.
        """
        update_stmt = (
            update(Message)
            .where(
                and_(
                    Message.order_id == order_id,
                    Message.sender_id != reader_id,
                    Message.is_read.is_(False)
                )
            )
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(update_stmt)
        return result.rowcount
