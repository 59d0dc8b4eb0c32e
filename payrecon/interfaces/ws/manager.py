"""Tracks checkout page sockets waiting on a payment outcome."""
import json
import logging
from collections import defaultdict
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class PaymentSocketManager:
    def __init__(self) -> None:
        self.connections: dict[str, set[WebSocket]] = defaultdict(set)

    async def connect(self, transaction_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections[transaction_id].add(websocket)
        logger.info("Checkout socket attached to transaction %s", transaction_id)

    def disconnect(self, transaction_id: str, websocket: WebSocket) -> None:
        sockets = self.connections.get(transaction_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            self.connections.pop(transaction_id, None)
        logger.info("Checkout socket detached from transaction %s", transaction_id)

    async def send_message(self, transaction_id: str, websocket: WebSocket, message: dict[str, Any]) -> bool:
        try:
            await websocket.send_text(json.dumps(message))
            return True
        except RuntimeError as exc:
            # Starlette raises RuntimeError once the socket is already closed.
            logger.error("Sending to checkout socket of %s failed: %s", transaction_id, exc)
            self.disconnect(transaction_id, websocket)
            return False

    def get_online_count(self) -> int:
        return sum(len(sockets) for sockets in self.connections.values())


__all__ = ["PaymentSocketManager"]
