"""JSON snapshot export of all business data."""
import asyncio
import json
import logging
import re
from pathlib import Path

from schemas import utcnow
from storage import Storage

logger = logging.getLogger("fieldops.backup")

BACKUP_VERSION = "1.0"
BACKUP_NAME_RE = re.compile(r"^backup-[0-9T\-]+\.json$")


async def build_snapshot(storage: Storage) -> dict:
    tasks = await storage.list_tasks()
    technicians = await storage.list_technicians()
    invoices = await storage.list_invoices()
    notifications = await storage.list_notifications()
    bot = await storage.get_bot_settings()
    system = await storage.get_system_settings()

    def dump(records):
        return [r.model_dump(mode="json", by_alias=True) for r in records]

    bot_data = None
    if bot is not None:
        # token stays out of backups
        bot_data = bot.model_dump(mode="json", by_alias=True, exclude={"bot_token"})

    return {
        "metadata": {
            "version": BACKUP_VERSION,
            "createdAt": utcnow().isoformat(),
            "counts": {
                "tasks": len(tasks),
                "technicians": len(technicians),
                "invoices": len(invoices),
                "notifications": len(notifications),
            },
        },
        "data": {
            "tasks": dump(tasks),
            "technicians": dump(technicians),
            "invoices": dump(invoices),
            "notifications": dump(notifications),
            "botSettings": bot_data,
            "systemSettings": system.model_dump(mode="json", by_alias=True) if system else None,
        },
    }


async def write_backup(storage: Storage, directory: str) -> Path:
    snapshot = await build_snapshot(storage)
    folder = Path(directory)
    path = folder / f"backup-{utcnow().strftime('%Y-%m-%dT%H-%M-%S')}.json"
    payload = json.dumps(snapshot, ensure_ascii=False, indent=2)

    def _write():
        folder.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")

    await asyncio.to_thread(_write)
    logger.info("Backup written: %s (%s)", path, snapshot["metadata"]["counts"])
    return path


def resolve_backup(directory: str, name: str) -> Path | None:
    """Path of an existing backup file, or None. Rejects anything but our own file names."""
    if not BACKUP_NAME_RE.match(name):
        return None
    path = Path(directory) / name
    return path if path.is_file() else None
