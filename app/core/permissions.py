# app/core/permissions.py
# Order membership rules shared by the order engine, the chat REST API and
# the realtime channel.
from app.core.exceptions import ForbiddenError
from app.models.message import SenderTypeEnum
from app.models.order import Order


def is_order_party(order: Order, user_id: str) -> bool:
    return user_id in (order.buyer_id, order.seller_id)


def ensure_order_party(order: Order, user_id: str, action: str = "access") -> None:
    """Raise ForbiddenError unless user_id is the order's buyer or seller."""
    if not is_order_party(order, user_id):
        raise ForbiddenError(f"You are not authorized to {action} this order")


def resolve_party(order: Order, user_id: str) -> SenderTypeEnum:
    """
    Which side of the order user_id is on (also the chat sender type).
    Always derived from the order, never taken from the client.
    """
    ensure_order_party(order, user_id)
    if order.buyer_id == user_id:
        return SenderTypeEnum.buyer
    return SenderTypeEnum.seller
