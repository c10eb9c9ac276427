"""
Tests for the Bot API client: retries, rate limits and error mapping.
"""
import asyncio

import httpx
import pytest

from services.telegram.client import TelegramAuthError, TelegramClient, TelegramError, inline_keyboard


def scripted(responses: list[httpx.Response]):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path.rsplit("/", 1)[-1])
        return responses[min(len(calls), len(responses)) - 1]

    return handler, calls


@pytest.fixture
def sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return delays


class TestRetries:
    """Idempotent calls retry, sends do not."""

    @pytest.mark.asyncio
    async def test_rate_limit_honors_retry_after(self, sleeps):
        handler, calls = scripted([
            httpx.Response(429, json={
                "ok": False, "error_code": 429, "description": "Too Many Requests",
                "parameters": {"retry_after": 7},
            }),
            httpx.Response(200, json={"ok": True, "result": {"username": "bot"}}),
        ])
        client = TelegramClient("t", transport=httpx.MockTransport(handler))

        me = await client.get_me()

        assert me == {"username": "bot"}
        assert calls == ["getMe", "getMe"]
        assert sleeps == [7.0]
        await client.close()

    @pytest.mark.asyncio
    async def test_server_errors_exhaust_retries(self, sleeps):
        handler, calls = scripted([
            httpx.Response(502, json={"ok": False, "error_code": 502, "description": "Bad Gateway"}),
        ])
        client = TelegramClient("t", retries=3, transport=httpx.MockTransport(handler))

        with pytest.raises(TelegramError) as exc_info:
            await client.get_me()

        assert exc_info.value.code == 502
        assert len(calls) == 3
        assert sleeps == [1.0, 2.0]
        await client.close()

    @pytest.mark.asyncio
    async def test_send_message_is_not_retried(self, sleeps):
        handler, calls = scripted([
            httpx.Response(500, json={"ok": False, "error_code": 500, "description": "Internal"}),
        ])
        client = TelegramClient("t", transport=httpx.MockTransport(handler))

        with pytest.raises(TelegramError):
            await client.send_message(1, "hi")

        assert calls == ["sendMessage"]
        assert sleeps == []
        await client.close()

    @pytest.mark.asyncio
    async def test_connect_error_then_success(self, sleeps):
        attempts = []

        def handler(request):
            attempts.append(1)
            if len(attempts) == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"ok": True, "result": []})

        client = TelegramClient("t", transport=httpx.MockTransport(handler))

        assert await client.get_updates(offset=5, timeout=1) == []
        assert len(attempts) == 2
        await client.close()


class TestErrors:
    """Error mapping."""

    @pytest.mark.asyncio
    async def test_unauthorized_token(self, sleeps):
        handler, calls = scripted([
            httpx.Response(401, json={"ok": False, "error_code": 401, "description": "Unauthorized"}),
        ])
        client = TelegramClient("t", transport=httpx.MockTransport(handler))

        with pytest.raises(TelegramAuthError):
            await client.get_me()

        assert len(calls) == 1
        assert client.is_connected is False
        await client.close()

    @pytest.mark.asyncio
    async def test_non_json_body(self, sleeps):
        handler, _ = scripted([httpx.Response(400, text="<html>bad</html>")])
        client = TelegramClient("t", transport=httpx.MockTransport(handler))

        with pytest.raises(TelegramError) as exc_info:
            await client.send_message(1, "hi")

        assert exc_info.value.code == 400
        await client.close()


def test_inline_keyboard():
    markup = inline_keyboard([("OK", {"action": "accept_task", "taskId": "3"})])

    assert markup == {
        "inline_keyboard": [[
            {"text": "OK", "callback_data": '{"action":"accept_task","taskId":"3"}'},
        ]]
    }
