"""Live notification delivery.

GET /api/notifications/stream  server-sent events, one queue per client
WS  /ws/notifications          WebSocket broadcast via ConnectionManager
RedisNotificationPublisher     mirrors the relay onto a Redis channel
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse
from redis.asyncio import Redis

from config import settings
from core.errors import AuthError
from core.security import decode_token, require_admin
from schemas import Notification
from services.notification_relay import NotificationRelay

logger = logging.getLogger("fieldops.stream")

router = APIRouter()


def notification_event(notification: Notification) -> dict:
    return {"type": "notification", "data": notification.model_dump(mode="json", by_alias=True)}


# ---------------------------------------------------------------------------
# Connection Manager
# ---------------------------------------------------------------------------

class ConnectionManager:
    """Manages active WebSocket connections and broadcasts messages."""

    def __init__(self) -> None:
        self.connections: list[WebSocket] = []

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self.connections.append(ws)
        logger.info("WS client connected (%d total)", len(self.connections))

    def disconnect(self, ws: WebSocket) -> None:
        if ws in self.connections:
            self.connections.remove(ws)
        logger.info("WS client disconnected (%d remaining)", len(self.connections))

    async def broadcast(self, message: str) -> None:
        dead: list[WebSocket] = []
        for ws in list(self.connections):
            try:
                await ws.send_text(message)
            except Exception:
                dead.append(ws)
        for ws in dead:
            if ws in self.connections:
                self.connections.remove(ws)
        if dead:
            logger.debug("Removed %d dead WS connections", len(dead))

    async def broadcast_notification(self, notification: Notification) -> None:
        if self.connections:
            await self.broadcast(json.dumps(notification_event(notification)))


# ---------------------------------------------------------------------------
# Server-sent events
# ---------------------------------------------------------------------------

async def sse_events(
    relay: NotificationRelay,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive: float,
) -> AsyncIterator[str]:
    """Yield SSE frames for every relayed notification until the client leaves."""
    queue: asyncio.Queue[Notification] = asyncio.Queue()
    listener = queue.put_nowait
    relay.subscribe(listener)
    try:
        yield ": connected\n\n"
        while not await is_disconnected():
            try:
                notification = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {json.dumps(notification_event(notification))}\n\n"
    finally:
        relay.unsubscribe(listener)


@router.get("/api/notifications/stream", dependencies=[Depends(require_admin)])
async def notifications_stream(request: Request):
    relay: NotificationRelay = request.app.state.relay
    return StreamingResponse(
        sse_events(relay, request.is_disconnected, settings.SSE_KEEPALIVE_INTERVAL),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# ---------------------------------------------------------------------------
# WebSocket Endpoint
# ---------------------------------------------------------------------------

@router.websocket("/ws/notifications")
async def ws_notifications(websocket: WebSocket) -> None:
    manager: ConnectionManager = websocket.app.state.ws_manager
    if getattr(websocket.app.state, "auth_enabled", settings.AUTH_ENABLED):
        try:
            decode_token(websocket.query_params.get("token") or "")
        except AuthError:
            await websocket.close(code=1008)
            return
    await manager.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        manager.disconnect(websocket)
    except Exception as exc:
        logger.debug("WS error: %s", exc)
        manager.disconnect(websocket)


# ---------------------------------------------------------------------------
# Relay -> Redis mirror
# ---------------------------------------------------------------------------

class RedisNotificationPublisher:
    """Relay listener publishing every notification on a Redis channel."""

    def __init__(self, redis: Redis, channel: str):
        self.redis = redis
        self.channel = channel

    async def __call__(self, notification: Notification) -> None:
        await self.redis.publish(self.channel, json.dumps(notification_event(notification)))
