"""WebSocket endpoint delivering the terminal outcome of one payment request."""
import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from payrecon.core.container import ApplicationContainer
from payrecon.modules.payments import TransactionNotFoundError

from .manager import PaymentSocketManager

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_RESOLVED = "payment_resolved"


async def _drain_client(websocket: WebSocket) -> None:
    # Checkout pages never send anything meaningful; reading only detects a hang-up.
    while True:
        await websocket.receive_text()


@router.websocket("/ws/payments/{transaction_id}")
async def payment_socket(websocket: WebSocket, transaction_id: str) -> None:
    container: ApplicationContainer = websocket.app.state.container
    manager: PaymentSocketManager = websocket.app.state.socket_manager

    try:
        subscription = await container.service.subscribe(transaction_id)
    except TransactionNotFoundError:
        logger.warning("WebSocket subscription for unknown transaction %s", transaction_id)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unknown transaction")
        return

    await manager.connect(transaction_id, websocket)
    event_task = asyncio.create_task(subscription.get())
    client_task = asyncio.create_task(_drain_client(websocket))
    try:
        done, _ = await asyncio.wait({event_task, client_task}, return_when=asyncio.FIRST_COMPLETED)
        if event_task in done:
            event = event_task.result()
            if await manager.send_message(transaction_id, websocket, event.to_message()):
                await websocket.close(code=status.WS_1000_NORMAL_CLOSURE)
        else:
            client_task.result()
    except WebSocketDisconnect:
        logger.info("Checkout socket for %s disconnected before resolution", transaction_id)
    finally:
        for task in (event_task, client_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(event_task, client_task, return_exceptions=True)
        subscription.close()
        manager.disconnect(transaction_id, websocket)
