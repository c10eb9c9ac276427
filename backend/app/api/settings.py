import logging

from fastapi import APIRouter, Depends

from api.deps import get_gateway, get_storage
from core.security import require_admin
from schemas import BotSettings, BotSettingsUpdate, SystemSettings, SystemSettingsUpdate
from services.telegram import GatewayInitError, TelegramGateway
from storage import Storage

logger = logging.getLogger("fieldops.api.settings")

router = APIRouter(tags=["settings"])


# --- Bot settings ---

@router.get("/api/bot-settings", response_model=BotSettings, dependencies=[Depends(require_admin)])
async def get_bot_settings(storage: Storage = Depends(get_storage)):
    current = await storage.get_bot_settings()
    return current or await storage.update_bot_settings({})


@router.put("/api/bot-settings", response_model=BotSettings, dependencies=[Depends(require_admin)])
async def update_bot_settings(
    data: BotSettingsUpdate,
    storage: Storage = Depends(get_storage),
    gateway: TelegramGateway = Depends(get_gateway),
):
    changes = data.changes()
    current = await storage.update_bot_settings(changes)

    if current.is_enabled and current.bot_token:
        if "bot_token" in changes or "is_enabled" in changes or not gateway.is_connected:
            try:
                await gateway.initialize(current.bot_token)
            except GatewayInitError:
                await storage.update_bot_settings({"is_enabled": False})
                raise
    elif gateway.is_connected:
        await gateway.stop()
        logger.info("Bot stopped from settings")
    return current


# --- System settings ---

@router.get("/api/system-settings", response_model=SystemSettings)
async def get_system_settings(storage: Storage = Depends(get_storage)):
    current = await storage.get_system_settings()
    return current or await storage.update_system_settings({})


@router.post("/api/system-settings", response_model=SystemSettings, dependencies=[Depends(require_admin)])
@router.put("/api/system-settings", response_model=SystemSettings, dependencies=[Depends(require_admin)])
async def update_system_settings(data: SystemSettingsUpdate, storage: Storage = Depends(get_storage)):
    current = await storage.update_system_settings(data.changes())
    logger.info("System settings updated (language=%s)", current.language.value)
    return current
