import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from config import settings
from core.errors import register_exception_handlers
from core.stream import ConnectionManager, RedisNotificationPublisher, router as stream_router
from services.notification_relay import NotificationRelay
from services.seed import seed_defaults
from services.task_lifecycle import TaskLifecycle
from services.telegram import GatewayInitError, TelegramClient, TelegramGateway
from storage import Storage, create_storage
from api.admin import router as admin_router
from api.backup import router as backup_router
from api.dashboard import router as dashboard_router
from api.invoices import router as invoices_router
from api.notifications import router as notifications_router
from api.settings import router as settings_router
from api.tasks import router as tasks_router
from api.technicians import router as technicians_router
from api.telegram import router as telegram_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("fieldops.main")

VERSION = "1.0.0"


@dataclass
class Services:
    storage: Storage
    relay: NotificationRelay
    gateway: TelegramGateway
    lifecycle: TaskLifecycle


def build_services(storage: Storage | None = None, client_factory=TelegramClient) -> Services:
    """Composition root: one storage, relay, gateway and lifecycle per app."""
    storage = storage or create_storage(
        settings.STORAGE_BACKEND, settings.DATABASE_URL, echo=settings.DEBUG,
    )
    relay = NotificationRelay(storage)
    gateway = TelegramGateway(storage, relay, client_factory=client_factory)
    lifecycle = TaskLifecycle(storage, relay, gateway)
    gateway.bind_lifecycle(lifecycle)
    return Services(storage=storage, relay=relay, gateway=gateway, lifecycle=lifecycle)


def create_app(
    services: Services | None = None,
    auth_enabled: bool | None = None,
    start_bot: bool = True,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Field service backend starting... storage=%s", settings.STORAGE_BACKEND)
        svc = services or build_services()
        storage, relay, gateway = svc.storage, svc.relay, svc.gateway
        app.state.storage = storage
        app.state.relay = relay
        app.state.gateway = gateway
        app.state.lifecycle = svc.lifecycle

        if settings.DB_CREATE_SCHEMA and hasattr(storage, "create_schema"):
            await storage.create_schema()
        await seed_defaults(storage)

        # WebSocket clients
        ws_manager = ConnectionManager()
        app.state.ws_manager = ws_manager
        relay.subscribe(ws_manager.broadcast_notification)

        # Redis mirror
        redis = None
        if settings.REDIS_URL:
            redis = Redis.from_url(settings.REDIS_URL, decode_responses=False)
            relay.subscribe(RedisNotificationPublisher(redis, settings.REDIS_NOTIFICATIONS_CHANNEL))
            logger.info("Notifications mirrored to Redis channel %s", settings.REDIS_NOTIFICATIONS_CHANNEL)

        # Telegram bot
        if start_bot:
            bot = await storage.get_bot_settings()
            if bot and bot.is_enabled and bot.bot_token:
                try:
                    await gateway.initialize(bot.bot_token)
                except GatewayInitError as exc:
                    logger.error("Telegram bot not started: %s", exc.message)
            else:
                logger.info("Telegram bot DISABLED in bot settings")

        yield

        # Shutdown
        logger.info("Field service backend shutting down...")
        await gateway.stop()
        relay.unsubscribe(ws_manager.broadcast_notification)
        await relay.drain()
        if redis is not None:
            await redis.aclose()
        await storage.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Field Service Dashboard API",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.auth_enabled = settings.AUTH_ENABLED if auth_enabled is None else auth_enabled

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(admin_router)
    app.include_router(dashboard_router)
    app.include_router(technicians_router)
    app.include_router(tasks_router)
    app.include_router(invoices_router)
    app.include_router(notifications_router)
    app.include_router(settings_router)
    app.include_router(telegram_router)
    app.include_router(backup_router)
    app.include_router(stream_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()
