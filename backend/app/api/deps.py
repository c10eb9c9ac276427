"""Request-scoped access to the services owned by the application."""
from fastapi import Request

from services.notification_relay import NotificationRelay
from services.task_lifecycle import TaskLifecycle
from services.telegram import TelegramGateway
from storage import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_relay(request: Request) -> NotificationRelay:
    return request.app.state.relay


def get_gateway(request: Request) -> TelegramGateway:
    return request.app.state.gateway


def get_lifecycle(request: Request) -> TaskLifecycle:
    return request.app.state.lifecycle
