# app/services/message_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import List
import logging

from app.core.exceptions import InternalError, NotFoundError
from app.core.permissions import ensure_order_party, resolve_party
from app.models.order import Order
from app.models.user import User
from app.repositories.message_repo import MessageRepository
from app.repositories.order_repo import OrderRepository
from app.schemas.message_schema import MessageIn, MessageOut

logger = logging.getLogger(__name__)


class MessageService:
    """
    Per-order chat. Both the REST endpoints and the realtime channel go
    through authorize_order_access, so the two transports cannot drift apart.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.message_repo = MessageRepository(db)
        self.order_repo = OrderRepository(db)

    async def release_connection(self) -> None:
        """
        End the session's transaction and return its connection to the pool.
        Used between realtime events; already loaded objects stay readable.
        """
        await self.db.close()

    async def authorize_order_access(self, order_id: str, user: User) -> Order:
        order = await self.order_repo.get_order_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        ensure_order_party(order, user.user_id, action="access messages for")
        return order

    async def fetch_thread(self, order_id: str, user: User) -> List[MessageOut]:
        """
        Return the thread oldest first and mark the counterpart's messages
        as read for the caller.
        """
        await self.authorize_order_access(order_id, user)
        try:
            marked = await self.message_repo.mark_messages_as_read(order_id, user.user_id)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Marking messages read failed for order {order_id}: {e}", exc_info=True)
            raise InternalError("Failed to fetch messages")
        if marked:
            logger.debug(f"Marked {marked} messages read in order {order_id} for {user.user_id}")

        messages = await self.message_repo.get_messages_by_order_id(order_id)
        return [MessageOut.model_validate(msg) for msg in messages]

    async def post_message(self, data: MessageIn, user: User) -> MessageOut:
        order = await self.authorize_order_access(data.order_id, user)
        # sender type comes from the order, never from the request
        sender_type = resolve_party(order, user.user_id)

        try:
            new_message = await self.message_repo.save_message(
                order_id=order.order_id,
                sender_id=user.user_id,
                sender_name=user.name,
                sender_avatar=user.avatar,
                sender_type=sender_type,
                text=data.text,
                attachments=[a.model_dump() for a in data.attachments],
            )
            message_out = MessageOut.model_validate(new_message)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Saving message failed for order {data.order_id}: {e}", exc_info=True)
            raise InternalError("Failed to send message")

        logger.info(f"Message {message_out.message_id} posted to order {order.order_id} by {sender_type.value}")
        return message_out
