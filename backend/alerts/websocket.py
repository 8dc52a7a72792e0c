"""
WebSocket endpoint for real-time alert delivery (Redis pub/sub).
"""

import asyncio

import redis.asyncio as aioredis
import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from api.deps import DEV_USER
from core.config import get_settings
from core.security import decode_access_token

settings = get_settings()
logger = structlog.get_logger()
router = APIRouter()

HEARTBEAT_SECONDS = 30


async def authenticate_ws(token: str) -> dict | None:
    """Validate the bearer token passed as a query param."""
    if settings.debug:
        return dict(DEV_USER)
    return decode_access_token(token)


async def stream_alerts(websocket: WebSocket, pubsub, heartbeat_seconds: float = HEARTBEAT_SECONDS) -> None:
    """
    Forward pub/sub messages and send heartbeats until either loop stops.

    When one loop ends or raises, the other is cancelled and awaited before
    returning; the first loop's exception is re-raised.
    """

    async def forward_messages():
        async for message in pubsub.listen():
            if message["type"] == "message":
                data = message["data"]
                await websocket.send_text(data.decode() if isinstance(data, bytes) else data)

    async def send_heartbeat():
        while True:
            await asyncio.sleep(heartbeat_seconds)
            await websocket.send_json({"type": "heartbeat", "payload": {}})

    tasks = [
        asyncio.create_task(forward_messages(), name="alerts.ws_forward"),
        asyncio.create_task(send_heartbeat(), name="alerts.ws_heartbeat"),
    ]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            task.result()
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


@router.websocket("/ws/alerts")
async def websocket_alerts(websocket: WebSocket, token: str = Query(...)):
    """
    Stream newly created alerts.

    Connect: ws://host/ws/alerts?token=<jwt>

    Messages sent to client:
        {"type": "alert", "payload": {...}}
        {"type": "heartbeat", "payload": {}}
    """
    user = await authenticate_ws(token)
    if user is None:
        await websocket.close(code=4001, reason="Unauthorized")
        return

    await websocket.accept()
    logger.info("alerts.ws_connected", user=user.get("sub"))

    redis = aioredis.from_url(settings.redis_url)
    pubsub = redis.pubsub()
    await pubsub.subscribe(settings.alerts_channel)

    try:
        await stream_alerts(websocket, pubsub)
    except (WebSocketDisconnect, RuntimeError) as exc:
        logger.info("alerts.ws_closed", user=user.get("sub"), reason=type(exc).__name__)
    finally:
        await pubsub.unsubscribe(settings.alerts_channel)
        await pubsub.aclose()
        await redis.aclose()
