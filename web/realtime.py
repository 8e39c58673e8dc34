"""
WebSocket push channel.

Each connection to /ws subscribes to the app's EventBus for as long as it is
open. Events are handed to a bounded per-connection queue and forwarded by the
connection's own task, so publishing never waits on a client. When the queue
is full the event is dropped for that connection only. Messages sent by the
client are read and ignored.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from core.events import ChangeEvent


logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def _offer(queue: asyncio.Queue, message: dict) -> None:
    try:
        queue.put_nowait(message)
    except asyncio.QueueFull:
        logger.warning("WebSocket queue full, dropping %s event", message.get("type"))


async def _forward_events(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _drain_client(websocket: WebSocket) -> None:
    while True:
        text = await websocket.receive_text()
        logger.debug("Ignoring client message: %s", text[:200])


@router.websocket("/ws")
async def event_stream(websocket: WebSocket):
    """Stream propertyCreated / reportCreated / taxNoticeCreated events."""
    bus = websocket.app.state.bus
    queue: asyncio.Queue = asyncio.Queue(maxsize=websocket.app.state.config.event_queue_size)
    loop = asyncio.get_running_loop()

    def enqueue(event: ChangeEvent) -> None:
        loop.call_soon_threadsafe(_offer, queue, event.to_message())

    # Subscribe before accepting so nothing published after the handshake is missed
    subscription = bus.subscribe(enqueue)
    logger.info("WebSocket client connected (subscriber %d)", subscription.subscription_id)

    tasks = []
    try:
        await websocket.accept()
        tasks = [
            asyncio.create_task(_forward_events(websocket, queue)),
            asyncio.create_task(_drain_client(websocket)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.warning("WebSocket connection closed with error: %s", error)
    finally:
        for task in tasks:
            task.cancel()
        bus.unsubscribe(subscription)
        logger.info("WebSocket client disconnected (subscriber %d)", subscription.subscription_id)
