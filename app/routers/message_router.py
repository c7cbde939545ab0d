# app/routers/message_router.py

from fastapi import APIRouter, Depends, status, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
import json
import logging

from app.core.database import get_db
from app.core.exceptions import AppError
from app.core.security import get_current_user, get_current_user_from_websocket_token
from app.core.websocket_manager import manager
from app.models.user import User
from app.schemas.common_schema import ApiResponse
from app.schemas.message_schema import JoinOrder, MessageIn, MessageList, MessageOut
from app.services.message_service import MessageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


def get_message_service(db: AsyncSession = Depends(get_db)) -> MessageService:
    return MessageService(db)


# --- RESTful API ---

@router.get("/orders/{order_id}/messages", response_model=ApiResponse[MessageList])
async def get_order_messages(
    order_id: str,
    user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    """
    The order's chat, oldest first. Messages from the other party are
    marked as read.
    """
    messages = await service.fetch_thread(order_id, user)
    return ApiResponse(data=MessageList(messages=messages))


@router.post(
    "/messages",
    response_model=ApiResponse[MessageOut],
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    message_in: MessageIn,
    user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    """
    Post a message. Connections that joined the order over the realtime
    channel receive it as a `new_message` event.
    """
    message = await service.post_message(message_in, user)
    await manager.broadcast(message.order_id, "new_message", _wire(message))
    return ApiResponse(message="Message sent successfully", data=message)


# --- WebSocket Endpoint ---

def _wire(message: MessageOut) -> dict:
    return message.model_dump(mode="json", by_alias=True)


async def _handle_event(
    websocket: WebSocket, user: User, service: MessageService, event: str, data: dict
) -> None:
    if event == "join_order":
        payload = JoinOrder.model_validate(data)
        await service.authorize_order_access(payload.order_id, user)
        manager.join(payload.order_id, user.user_id, websocket)
        await manager.send_event(websocket, "joined", {"orderId": payload.order_id})

    elif event == "send_message":
        payload = MessageIn.model_validate(data)
        message = await service.post_message(payload, user)
        # the sender is part of the group it writes to
        manager.join(message.order_id, user.user_id, websocket)
        await manager.broadcast(message.order_id, "new_message", _wire(message))

    else:
        await manager.send_event(websocket, "error", {"message": f"Unknown event: {event}"})


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    # /chat/ws?token=<JWT> or an Authorization header; rejected before accept
    user: User = Depends(get_current_user_from_websocket_token),
    service: MessageService = Depends(get_message_service),
):
    """
    Realtime chat. Frames are JSON objects `{"event": ..., "data": {...}}`.

    - client -> server: `join_order {orderId}`, `send_message {orderId, text, attachments}`
    - server -> client: `joined {orderId}`, `new_message <message>`, `error {message}`
    """
    await manager.accept(websocket, user.user_id)
    # the handshake lookup opened a transaction; do not hold it for the life of the socket
    await service.release_connection()

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))

            raw = message.get("text")
            if raw is None:
                await manager.send_event(websocket, "error", {"message": "Binary frames are not supported"})
                continue

            try:
                frame = json.loads(raw)
                if not isinstance(frame, dict) or not isinstance(frame.get("data", {}), dict):
                    raise ValueError("Frames must be objects of the form {event, data}")
                await _handle_event(websocket, user, service, frame.get("event"), frame.get("data") or {})
            except AppError as e:
                await manager.send_event(websocket, "error", {"message": e.detail})
            except PydanticValidationError as e:
                await manager.send_event(websocket, "error", {"message": e.errors()[0]["msg"]})
            except ValueError as e:
                await manager.send_event(websocket, "error", {"message": str(e)})
            finally:
                await service.release_connection()

    except WebSocketDisconnect:
        manager.disconnect(user.user_id, websocket)
    except Exception as e:
        logger.error(f"Unexpected error in chat connection of user {user.user_id}: {e}", exc_info=True)
        manager.disconnect(user.user_id, websocket)
        raise
