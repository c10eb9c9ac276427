"""Technician registration and admin-side creation."""
import logging

from core.errors import ConflictError
from schemas import Technician, TechnicianCreate
from services.notification_relay import NotificationRelay
from storage import Storage

logger = logging.getLogger("fieldops.technicians")


async def register_technician(
    storage: Storage, relay: NotificationRelay, data: TechnicianCreate,
) -> tuple[Technician, bool]:
    """Self-registration from the bot. Idempotent on ``telegram_id``.

    Returns (technician, created). An existing record is returned unchanged.
    """
    existing = await storage.get_technician_by_telegram_id(data.telegram_id)
    if existing is not None:
        return existing, False

    try:
        technician = await storage.create_technician(data)
    except ConflictError:
        # concurrent /start from the same chat
        existing = await storage.get_technician_by_telegram_id(data.telegram_id)
        if existing is None:
            raise
        return existing, False

    await relay.notify(
        "technician_registered",
        f"New technician registered: {technician.full_name} (@{technician.username or '-'})",
        {"technicianId": technician.id, "telegramId": technician.telegram_id},
    )
    logger.info("Technician registered: %s (id=%d)", technician.full_name, technician.id)
    return technician, True


async def add_technician(
    storage: Storage, relay: NotificationRelay, data: TechnicianCreate,
) -> Technician:
    """Admin-side creation. Duplicate ``telegram_id`` raises ConflictError."""
    technician = await storage.create_technician(data)
    await relay.notify(
        "technician_added",
        f"New technician added: {technician.full_name}",
        {"technicianId": technician.id},
    )
    return technician


async def remove_technician(storage: Storage, technician_id: int) -> bool:
    """Delete a technician and drop its id from every task that lists it."""
    if await storage.get_technician(technician_id) is None:
        return False

    for task in await storage.list_tasks_by_technician(technician_id):
        remaining = [tid for tid in task.technician_ids if tid != technician_id]
        await storage.update_task(task.id, {"technician_ids": remaining})
        logger.info("Technician id=%d unassigned from task %s", technician_id, task.task_number)

    return await storage.delete_technician(technician_id)
