"""In-process notification relay.

Every notification is persisted first, then pushed to live listeners
(SSE streams, WebSocket clients, the Redis mirror). Push is best effort:
a listener that fails is logged and skipped, the stored record is the
source of truth.
"""
import asyncio
import inspect
import json
import logging
from typing import Any, Callable

from schemas import Notification, NotificationCreate
from storage import Storage

logger = logging.getLogger("fieldops.relay")

Listener = Callable[[Notification], Any]


class NotificationRelay:

    def __init__(self, storage: Storage):
        self.storage = storage
        self._listeners: list[Listener] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)
            logger.debug("Listener subscribed (%d total)", len(self._listeners))

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
            logger.debug("Listener unsubscribed (%d remaining)", len(self._listeners))

    async def create_notification(self, data: NotificationCreate) -> Notification | None:
        """Persist, then schedule fan-out on the next loop iteration.

        Returns None when the record could not be stored.
        """
        try:
            notification = await self.storage.create_notification(data)
        except Exception:
            logger.exception("Failed to store notification type=%s", data.type)
            return None

        loop = asyncio.get_running_loop()
        loop.call_soon(self._fan_out, notification, list(self._listeners))
        return notification

    async def notify(
        self, type: str, message: str, metadata: dict | None = None,
    ) -> Notification | None:
        return await self.create_notification(
            NotificationCreate(
                type=type,
                message=message,
                metadata=json.dumps(metadata, default=str) if metadata is not None else None,
            )
        )

    async def log_activity(
        self, type: str, message: str, metadata: dict | None = None,
    ) -> Notification | None:
        return await self.notify(f"activity_{type}", message, metadata)

    async def drain(self) -> None:
        """Wait for scheduled fan-out and async listeners to finish."""
        await asyncio.sleep(0)
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _fan_out(self, notification: Notification, listeners: list[Listener]) -> None:
        for listener in listeners:
            try:
                result = listener(notification)
            except Exception:
                logger.exception("Notification listener %r failed", listener)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._listener_done)

    def _listener_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Async notification listener failed: %s", exc, exc_info=exc)
