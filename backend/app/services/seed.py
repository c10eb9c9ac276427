"""First-run defaults and optional demo data."""
import logging

from config import settings
from core.security import hash_password
from schemas import TaskCreate, TechnicianCreate
from storage import Storage

logger = logging.getLogger("fieldops.seed")

DEMO_TECHNICIANS = [
    TechnicianCreate(
        telegram_id="100000001", first_name="Ahmed", last_name="Mohamed",
        phone_number="+49123456789", service_provided="Electrical", city_area="Berlin",
    ),
    TechnicianCreate(
        telegram_id="100000002", first_name="Fatima", last_name="Ali",
        phone_number="+49987654321", service_provided="Plumbing", city_area="Munich",
    ),
    TechnicianCreate(
        telegram_id="100000003", first_name="Omar", last_name="Hassan",
        phone_number="+49555666777", service_provided="Air conditioning", city_area="Hamburg",
    ),
]


async def seed_defaults(storage: Storage) -> None:
    """Make sure the singleton rows exist. Existing rows are left alone."""
    if await storage.get_system_settings() is None:
        await storage.update_system_settings({"language": settings.DEFAULT_LANGUAGE})
        logger.info("System settings created (language=%s)", settings.DEFAULT_LANGUAGE)

    if await storage.get_bot_settings() is None:
        token = settings.TELEGRAM_BOT_TOKEN
        await storage.update_bot_settings({"bot_token": token, "is_enabled": bool(token)})
        logger.info("Bot settings created (enabled=%s)", bool(token))

    if await storage.get_admin_profile() is None:
        await storage.upsert_admin_profile({
            "username": settings.DEFAULT_ADMIN_USERNAME,
            "display_name": "Administrator",
            "email": settings.DEFAULT_ADMIN_EMAIL,
            "password_hash": hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        })
        logger.warning(
            "Default admin '%s' created, change its password", settings.DEFAULT_ADMIN_USERNAME,
        )

    if settings.SEED_DEMO_DATA and not await storage.list_technicians():
        await seed_demo_data(storage)


async def seed_demo_data(storage: Storage) -> None:
    technicians = [await storage.create_technician(t) for t in DEMO_TECHNICIANS]
    await storage.create_task(TaskCreate(
        task_id="T-1001",
        task_number="1001",
        title="Install ceiling lights",
        description="Replace four ceiling lights in the living room.",
        client_name="Max Mustermann",
        client_phone="+4915112345678",
        location="Alexanderplatz 1, 10178 Berlin",
        technician_ids=[technicians[0].id],
        scheduled_date="2026-01-15",
        scheduled_time_from="09:00",
        scheduled_time_to="12:00",
    ))
    logger.info("Demo data seeded: %d technicians, 1 task", len(technicians))
