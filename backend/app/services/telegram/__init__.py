"""Telegram bot integration.

Entry point: TelegramGateway. TelegramClient is the raw Bot API wrapper.
"""
from services.telegram.client import TelegramAuthError, TelegramClient, TelegramError
from services.telegram.gateway import GatewayInitError, TelegramGateway

__all__ = [
    "GatewayInitError",
    "TelegramAuthError",
    "TelegramClient",
    "TelegramError",
    "TelegramGateway",
]
