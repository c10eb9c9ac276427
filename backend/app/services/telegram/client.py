"""Telegram Bot API HTTP client.

Responsibilities:
- calls to https://api.telegram.org/bot<token>/<method>
- retry with exponential backoff for idempotent calls (getMe, getUpdates)
- honoring retry_after on 429
- mapping API errors to TelegramError / TelegramAuthError

Does NOT know about tasks or technicians.
"""
import asyncio
import json
import logging

import httpx

from services.telegram.config import ALLOWED_UPDATES, AUTH_ERROR_CODES

logger = logging.getLogger("fieldops.telegram.client")


class TelegramError(Exception):
    """Telegram API error."""
    def __init__(self, code: int, description: str):
        self.code = code
        self.description = description
        super().__init__(f"[{code}] {description}")


class TelegramAuthError(TelegramError):
    """Token rejected by Telegram; the bot cannot run."""
    pass


class TelegramClient:

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.telegram.org",
        timeout: float = 15.0,
        retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = f"{api_url.rstrip('/')}/bot{token}"
        self.retries = max(1, retries)
        self._timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.is_connected: bool = False

    async def call(
        self,
        method: str,
        params: dict | None = None,
        files: dict | None = None,
        retry: bool = True,
        timeout: float | None = None,
    ):
        """Single API call. Returns the ``result`` field of the response."""
        url = f"{self.base_url}/{method}"
        attempts = self.retries if retry else 1
        last_exc: Exception | None = None

        for attempt in range(attempts):
            try:
                if files:
                    resp = await self._client.post(
                        url, data=params or {}, files=files, timeout=timeout or self._timeout,
                    )
                else:
                    resp = await self._client.post(
                        url, json=params or {}, timeout=timeout or self._timeout,
                    )
            except (httpx.ConnectError, httpx.TimeoutException) as exc:
                last_exc = exc
                if attempt + 1 >= attempts:
                    break
                backoff = 2 ** attempt
                logger.warning(
                    "Telegram %s connection error: %s, retry %d/%d in %ds",
                    method, exc, attempt + 1, attempts, backoff,
                )
                await asyncio.sleep(backoff)
                continue

            try:
                data = resp.json()
            except ValueError:
                data = {"ok": False, "error_code": resp.status_code, "description": resp.text[:200]}

            if data.get("ok"):
                self.is_connected = True
                return data.get("result")

            code = int(data.get("error_code") or resp.status_code)
            description = data.get("description", "unknown error")

            if code in AUTH_ERROR_CODES:
                self.is_connected = False
                raise TelegramAuthError(code, description)

            if code == 429 or code >= 500:
                last_exc = TelegramError(code, description)
                if attempt + 1 >= attempts:
                    break
                retry_after = (data.get("parameters") or {}).get("retry_after")
                backoff = float(retry_after) if retry_after else float(2 ** attempt)
                logger.warning(
                    "Telegram %s HTTP %d, retry %d/%d in %.0fs",
                    method, code, attempt + 1, attempts, backoff,
                )
                await asyncio.sleep(backoff)
                continue

            raise TelegramError(code, description)

        if isinstance(last_exc, TelegramError):
            raise last_exc
        self.is_connected = False
        raise TelegramError(0, f"{method} failed: {last_exc}")

    async def get_me(self) -> dict:
        return await self.call("getMe")

    async def get_updates(self, offset: int = 0, timeout: int = 30) -> list[dict]:
        # the HTTP timeout has to outlive the long poll
        return await self.call(
            "getUpdates",
            {"offset": offset, "timeout": timeout, "allowed_updates": ALLOWED_UPDATES},
            timeout=timeout + self._timeout,
        ) or []

    async def send_message(
        self,
        chat_id: int | str,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = None,
    ) -> dict:
        params: dict = {"chat_id": chat_id, "text": text}
        if reply_markup:
            params["reply_markup"] = reply_markup
        if parse_mode:
            params["parse_mode"] = parse_mode
        return await self.call("sendMessage", params, retry=False)

    async def send_document(
        self,
        chat_id: int | str,
        content: bytes,
        filename: str,
        caption: str | None = None,
        content_type: str = "application/pdf",
    ) -> dict:
        params = {"chat_id": str(chat_id)}
        if caption:
            params["caption"] = caption
        files = {"document": (filename, content, content_type)}
        return await self.call("sendDocument", params, files=files, retry=False)

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None, show_alert: bool = False,
    ) -> bool:
        params: dict = {"callback_query_id": callback_query_id}
        if text:
            params["text"] = text
            params["show_alert"] = show_alert
        return await self.call("answerCallbackQuery", params, retry=False)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def inline_keyboard(*rows: list[tuple[str, dict]]) -> dict:
    """Build ``reply_markup`` from rows of (label, callback payload)."""
    return {
        "inline_keyboard": [
            [
                {"text": label, "callback_data": json.dumps(payload, separators=(",", ":"))}
                for label, payload in row
            ]
            for row in rows
        ]
    }
