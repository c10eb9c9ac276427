"""Telegram bot gateway.

Outbound: task offers, client details, invoices and invoice PDFs sent to
technicians. Every sender returns a bool and never raises.
Inbound: long-polls getUpdates and routes /start, button callbacks and
free text. Button callbacks drive the task lifecycle.

The display language is read from system settings on every send.
"""
import asyncio
import json
import logging

import httpx

from config import settings
from core.errors import FieldOpsError, GatewayUnavailableError, InvalidTransitionError, NotFoundError
from schemas import TechnicianCreate
from services.notification_relay import NotificationRelay
from services.technicians import register_technician
from services.telegram.client import TelegramAuthError, TelegramClient, TelegramError, inline_keyboard
from services.telegram.config import (
    ACTION_ACCEPT,
    ACTION_COMPLETE,
    ACTION_REJECT,
    CALLBACK_ACTIONS,
    PARSE_MODE_MARKDOWN,
    POLL_BACKOFF_MAX,
    POLL_BACKOFF_START,
)
from services.telegram.messages import DEFAULT_LANGUAGE, escape_markdown, render
from storage import Storage

logger = logging.getLogger("fieldops.telegram.gateway")

CONFIRMATION_KEYS = {
    ACTION_ACCEPT: "task_accepted",
    ACTION_REJECT: "task_rejected",
    ACTION_COMPLETE: "task_completed",
}


class GatewayInitError(GatewayUnavailableError):
    """Bot could not be started (empty or rejected token)."""
    status_code = 400


def _chat_id(value: str | int | None) -> int | None:
    """Numeric Telegram chat id, or None when the value cannot be one."""
    if value is None:
        return None
    text = str(value).strip()
    if not text.lstrip("-").isdigit():
        return None
    return int(text)


def _display_name(user: dict) -> str:
    return f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip() or "Unknown"


class TelegramGateway:

    def __init__(
        self,
        storage: Storage,
        relay: NotificationRelay,
        client_factory=TelegramClient,
        poll_timeout: int | None = None,
    ):
        self.storage = storage
        self.relay = relay
        self._client_factory = client_factory
        self._poll_timeout = poll_timeout if poll_timeout is not None else settings.TELEGRAM_POLL_TIMEOUT
        self._client: TelegramClient | None = None
        self._poll_task: asyncio.Task | None = None
        self._running = False
        self._offset = 0
        self._lifecycle = None
        self.bot_username: str | None = None

    def bind_lifecycle(self, lifecycle) -> None:
        self._lifecycle = lifecycle

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._running

    # --- connection ---

    async def initialize(self, token: str, poll: bool = True) -> None:
        """(Re)connect with ``token``. Raises GatewayInitError if Telegram rejects it."""
        await self.stop()
        if not token:
            raise GatewayInitError("Bot token is empty")

        client = self._client_factory(
            token,
            api_url=settings.TELEGRAM_API_URL,
            timeout=settings.TELEGRAM_REQUEST_TIMEOUT,
            retries=settings.TELEGRAM_RETRY_ATTEMPTS,
        )
        try:
            me = await client.get_me()
        except (TelegramError, httpx.HTTPError) as exc:
            await client.close()
            logger.error("Bot initialization failed: %s", exc)
            raise GatewayInitError(f"Failed to initialize bot: {exc}") from exc

        self._client = client
        self.bot_username = (me or {}).get("username")
        self._running = True
        if poll:
            self._poll_task = asyncio.create_task(self._poll_loop(), name="telegram_polling")
        logger.info(
            "Telegram bot initialized as @%s (language: %s)",
            self.bot_username or "unknown", await self._language(),
        )

    async def stop(self) -> None:
        """Tear down the connection. Safe when not connected."""
        self._running = False
        if self._poll_task is not None:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None
        if self._client is not None:
            await self._client.close()
            self._client = None
            logger.info("Telegram bot stopped")

    async def test_connection(self) -> dict:
        if self._client is None:
            return {"success": False, "error": "Bot is not initialized"}
        try:
            me = await self._client.get_me()
            return {"success": True, "data": me}
        except (TelegramError, httpx.HTTPError) as exc:
            return {"success": False, "error": str(exc)}

    def status(self) -> dict:
        return {"isConnected": self.is_connected, "botUsername": self.bot_username}

    async def _poll_loop(self) -> None:
        backoff = POLL_BACKOFF_START
        logger.info("Telegram polling started")
        while self._running:
            try:
                updates = await self._client.get_updates(self._offset, self._poll_timeout)
            except TelegramAuthError as exc:
                logger.error("Bot token rejected, polling stopped: %s", exc)
                self._running = False
                break
            except (TelegramError, httpx.HTTPError) as exc:
                logger.warning("Polling error: %s, retry in %.0fs", exc, backoff)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, POLL_BACKOFF_MAX)
                continue

            backoff = POLL_BACKOFF_START
            for update in updates:
                self._offset = max(self._offset, update.get("update_id", 0) + 1)
                try:
                    await self.handle_update(update)
                except Exception:
                    logger.exception("Failed to handle update %s", update.get("update_id"))

    # --- inbound ---

    async def handle_update(self, update: dict) -> None:
        if "callback_query" in update:
            await self._handle_callback(update["callback_query"])
            return
        message = update.get("message")
        if not message:
            return
        text = (message.get("text") or "").strip()
        if text.startswith("/start"):
            await self._handle_start(message)
        elif text and not text.startswith("/"):
            chat_id = message["chat"]["id"]
            await self._send(chat_id, render(await self._language(), "help"))

    async def _handle_start(self, message: dict) -> None:
        chat_id = message["chat"]["id"]
        sender = message.get("from") or {}
        lang = await self._language()
        data = TechnicianCreate(
            telegram_id=str(sender.get("id", chat_id)),
            first_name=sender.get("first_name") or "Unknown",
            last_name=sender.get("last_name") or None,
            username=sender.get("username") or None,
        )
        try:
            technician, created = await register_technician(self.storage, self.relay, data)
        except FieldOpsError as exc:
            logger.error("Technician registration failed for chat %s: %s", chat_id, exc)
            await self._send(chat_id, render(lang, "registration_failed"))
            return

        if created:
            text = render(
                lang, "registered",
                first_name=technician.first_name,
                id=technician.id,
                name=technician.full_name,
                username=technician.username or "-",
            )
        else:
            status = render(lang, "status_active" if technician.is_active else "status_inactive")
            text = render(lang, "welcome_back", name=technician.full_name, status=status)
        await self._send(chat_id, text)

    async def _handle_callback(self, query: dict) -> None:
        query_id = query.get("id")
        sender = query.get("from") or {}
        chat_id = ((query.get("message") or {}).get("chat") or {}).get("id", sender.get("id"))

        try:
            payload = json.loads(query.get("data") or "")
        except ValueError:
            payload = None
        action = payload.get("action") if isinstance(payload, dict) else None
        if action not in CALLBACK_ACTIONS or self._lifecycle is None:
            if action in CALLBACK_ACTIONS:
                logger.error("Callback %s received but no lifecycle is bound", action)
            await self._answer(query_id)
            return

        try:
            task_id = int(payload.get("taskId"))
        except (TypeError, ValueError):
            task_id = None

        lang = await self._language()
        try:
            result = await self._lifecycle.handle_callback(action, task_id, _display_name(sender))
        except NotFoundError:
            await self._send(chat_id, render(lang, "task_not_found"))
            await self._answer(query_id)
            return
        except InvalidTransitionError as exc:
            await self._send(
                chat_id,
                render(lang, "task_transition_invalid", task_number=exc.task_number, status=exc.current),
            )
            await self._answer(query_id)
            return
        except Exception:
            logger.exception("Callback %s for task %s failed", action, task_id)
            await self._answer(query_id, render(lang, "error_generic"), show_alert=True)
            return

        task = result.task
        if result.changed:
            text = render(lang, CONFIRMATION_KEYS[action], task_number=task.task_number, title=task.title)
        else:
            text = render(lang, "task_unchanged", task_number=task.task_number, status=task.status.value)
        await self._send(chat_id, text)
        await self._answer(query_id)

    # --- outbound ---

    async def send_task_to_technician(self, task_id: int, technician_id: int) -> bool:
        if not self._ready("send task"):
            return False
        task = await self.storage.get_task(task_id)
        technician = await self.storage.get_technician(technician_id)
        if task is None or technician is None:
            logger.error("Send task: task %s or technician %s not found", task_id, technician_id)
            return False

        lang = await self._language()
        text = render(
            lang, "task_new",
            task_number=task.task_number,
            title=task.title,
            description=task.description,
            location=task.location,
            date=task.scheduled_date,
            time=f"{task.scheduled_time_from} - {task.scheduled_time_to}",
        )
        keyboard = inline_keyboard([
            (f"✅ {render(lang, 'button_accept')}", {"action": ACTION_ACCEPT, "taskId": str(task.id)}),
            (f"❌ {render(lang, 'button_reject')}", {"action": ACTION_REJECT, "taskId": str(task.id)}),
        ])
        if not await self._send(technician.telegram_id, text, reply_markup=keyboard):
            return False

        await self.relay.notify(
            "task_sent",
            f"Task {task.task_number} sent to {technician.full_name}",
            {"taskId": task.id, "technicianId": technician.id},
        )
        logger.info("Task %s sent to technician %s", task.task_number, technician.full_name)
        return True

    async def send_client_info_to_technician(self, task_id: int, technician_id: int) -> bool:
        if not self._ready("send client info"):
            return False
        task = await self.storage.get_task(task_id)
        technician = await self.storage.get_technician(technician_id)
        if task is None or technician is None:
            logger.error("Send client info: task %s or technician %s not found", task_id, technician_id)
            return False

        lang = await self._language()
        text = render(
            lang, "client_info",
            client_name=task.client_name,
            client_phone=task.client_phone,
            location=task.location,
            map_url=task.map_url or "-",
            description=task.description,
        )
        keyboard = inline_keyboard([
            (f"✅ {render(lang, 'button_complete')}", {"action": ACTION_COMPLETE, "taskId": str(task.id)}),
        ])
        if not await self._send(technician.telegram_id, text, reply_markup=keyboard):
            return False

        await self.relay.notify(
            "client_info_sent",
            f"Client info sent for task {task.task_number} ({task.client_name})",
            {"taskId": task.id, "technicianId": technician.id},
        )
        return True

    async def send_invoice_to_technician(self, invoice_id: int) -> bool:
        if not self._ready("send invoice"):
            return False
        invoice = await self.storage.get_invoice(invoice_id)
        if invoice is None:
            logger.error("Send invoice: invoice %s not found", invoice_id)
            return False
        technician = await self.storage.get_technician(invoice.technician_id)
        if technician is None:
            logger.error("Send invoice: technician %s not found", invoice.technician_id)
            return False

        lang = await self._language()
        text = render(
            lang, "invoice",
            invoice_number=escape_markdown(invoice.invoice_number),
            amount=f"{invoice.amount:.2f}",
            client_name=escape_markdown(invoice.client_name),
            due_date=escape_markdown(invoice.due_date),
            status=escape_markdown(invoice.status.value),
        )
        if not await self._send(technician.telegram_id, text, parse_mode=PARSE_MODE_MARKDOWN):
            return False

        await self.relay.notify(
            "invoice_sent",
            f"Invoice {invoice.invoice_number} sent to {technician.full_name}",
            {"invoiceId": invoice.id, "technicianId": technician.id},
        )
        logger.info("Invoice %s sent to technician %s", invoice.invoice_number, technician.full_name)
        return True

    async def send_invoice_pdf(
        self, chat_id: str | int, content: bytes, file_name: str, caption: str | None = None,
    ) -> bool:
        if not self._ready("send invoice PDF"):
            return False
        target = _chat_id(chat_id)
        if target is None:
            logger.error("Send invoice PDF: invalid chat id %r", chat_id)
            return False

        try:
            await self._client.send_document(target, content, file_name, caption=caption)
        except (TelegramError, httpx.HTTPError) as exc:
            logger.error("Failed to send invoice PDF %s to %s: %s", file_name, target, exc)
            error_text = render(await self._language(), "invoice_pdf_error", file_name=file_name, error=exc)
            await self._send(target, error_text)
            return False

        await self.relay.notify(
            "invoice_pdf_sent",
            f"Invoice PDF {file_name} sent to chat {target}",
            {"chatId": target, "fileName": file_name},
        )
        logger.info("Invoice PDF %s sent to chat %s", file_name, target)
        return True

    # --- helpers ---

    def _ready(self, what: str) -> bool:
        if not self.is_connected:
            logger.error("Cannot %s: bot is not running", what)
            return False
        return True

    async def _language(self) -> str:
        try:
            system = await self.storage.get_system_settings()
        except Exception as exc:
            logger.warning("Could not read system language, using default: %s", exc)
            return settings.DEFAULT_LANGUAGE or DEFAULT_LANGUAGE
        if system is None:
            return settings.DEFAULT_LANGUAGE or DEFAULT_LANGUAGE
        return system.language.value

    async def _send(self, chat_id, text: str, **kwargs) -> bool:
        target = _chat_id(chat_id)
        if target is None or self._client is None:
            logger.error("Cannot send message: invalid chat id %r or bot not running", chat_id)
            return False
        try:
            await self._client.send_message(target, text, **kwargs)
            return True
        except (TelegramError, httpx.HTTPError) as exc:
            logger.error("sendMessage to %s failed: %s", target, exc)
            return False

    async def _answer(self, query_id: str | None, text: str | None = None, show_alert: bool = False) -> None:
        if not query_id or self._client is None:
            return
        try:
            await self._client.answer_callback_query(query_id, text, show_alert)
        except (TelegramError, httpx.HTTPError) as exc:
            logger.debug("answerCallbackQuery failed: %s", exc)
