# app/core/websocket_manager.py

from fastapi import WebSocket
from typing import Any, Dict, List, Tuple
import logging

logger = logging.getLogger(__name__)


# Connection manager: order_id -> List[Tuple[user_id, WebSocket]]
class ConnectionManager:
    """
    Tracks which sockets have joined which order's chat group and fans
    events out to them. A socket may be in several groups at once.
    """

    def __init__(self):
        self.active_connections: Dict[str, List[Tuple[str, WebSocket]]] = {}

    async def accept(self, websocket: WebSocket, user_id: str):
        await websocket.accept()
        logger.info(f"User {user_id} opened a chat connection")

    def join(self, order_id: str, user_id: str, websocket: WebSocket) -> None:
        group = self.active_connections.setdefault(order_id, [])
        if (user_id, websocket) not in group:
            group.append((user_id, websocket))
            logger.info(f"User {user_id} joined order {order_id}. Connections in group: {len(group)}")

    def is_member(self, order_id: str, websocket: WebSocket) -> bool:
        return any(ws is websocket for _, ws in self.active_connections.get(order_id, []))

    def leave(self, order_id: str, user_id: str, websocket: WebSocket) -> None:
        group = self.active_connections.get(order_id)
        if not group:
            return
        connection = (user_id, websocket)
        if connection in group:
            group.remove(connection)
        if not group:
            del self.active_connections[order_id]

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        """Drop the socket from every group it joined"""
        for order_id in list(self.active_connections):
            self.leave(order_id, user_id, websocket)
        logger.info(f"User {user_id} disconnected")

    async def send_event(self, websocket: WebSocket, event: str, data: Any) -> None:
        await websocket.send_json({"event": event, "data": data})

    async def broadcast(self, order_id: str, event: str, data: Any) -> None:
        """Send an event to every connection in the order's group."""
        disconnected_clients = []
        for connection in list(self.active_connections.get(order_id, [])):
            user_id, ws = connection
            try:
                await self.send_event(ws, event, data)
            except Exception as e:
                logger.warning(f"Failed to send {event} to user {user_id} in order {order_id}: {e}")
                disconnected_clients.append(connection)
        # prune dead sockets
        for user_id, ws in disconnected_clients:
            self.leave(order_id, user_id, ws)


manager = ConnectionManager()
