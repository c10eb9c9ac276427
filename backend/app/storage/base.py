"""Persistence contract shared by the in-memory and PostgreSQL backends.

Rules every backend follows:
- lookups for a missing id return ``None`` (``False`` for deletes), never raise;
- duplicate unique keys raise ``core.errors.ConflictError``;
- ``update_*`` takes only the fields to change (snake_case keys) and
  refreshes ``updated_at`` where the entity has one;
- lists come back newest first; notifications tie-break on id.
"""
from abc import ABC, abstractmethod
from typing import Any

from schemas import (
    AdminProfile,
    BotSettings,
    Invoice,
    InvoiceCreate,
    Notification,
    NotificationCreate,
    SystemSettings,
    Task,
    TaskCreate,
    TaskStatus,
    Technician,
    TechnicianCreate,
    User,
    UserCreate,
)

Changes = dict[str, Any]


class Storage(ABC):

    # --- Users ---

    @abstractmethod
    async def get_user_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User: ...

    # --- Technicians ---

    @abstractmethod
    async def list_technicians(self) -> list[Technician]: ...

    @abstractmethod
    async def get_technician(self, technician_id: int) -> Technician | None: ...

    @abstractmethod
    async def get_technician_by_telegram_id(self, telegram_id: str) -> Technician | None: ...

    @abstractmethod
    async def create_technician(self, data: TechnicianCreate) -> Technician: ...

    @abstractmethod
    async def update_technician(self, technician_id: int, changes: Changes) -> Technician | None: ...

    @abstractmethod
    async def delete_technician(self, technician_id: int) -> bool: ...

    # --- Tasks ---

    @abstractmethod
    async def list_tasks(self) -> list[Task]: ...

    @abstractmethod
    async def get_task(self, task_id: int) -> Task | None: ...

    @abstractmethod
    async def list_tasks_by_status(self, status: TaskStatus) -> list[Task]: ...

    @abstractmethod
    async def create_task(self, data: TaskCreate) -> Task: ...

    @abstractmethod
    async def update_task(self, task_id: int, changes: Changes) -> Task | None: ...

    @abstractmethod
    async def delete_task(self, task_id: int) -> bool: ...

    async def list_tasks_by_technician(self, technician_id: int) -> list[Task]:
        return await self.list_tasks_by_technicians([technician_id])

    async def list_tasks_by_technicians(self, technician_ids: list[int]) -> list[Task]:
        wanted = set(technician_ids)
        return [t for t in await self.list_tasks() if wanted.intersection(t.technician_ids)]

    # --- Invoices ---

    @abstractmethod
    async def list_invoices(self) -> list[Invoice]: ...

    @abstractmethod
    async def get_invoice(self, invoice_id: int) -> Invoice | None: ...

    @abstractmethod
    async def list_invoices_by_technician(self, technician_id: int) -> list[Invoice]: ...

    @abstractmethod
    async def create_invoice(self, data: InvoiceCreate) -> Invoice: ...

    @abstractmethod
    async def update_invoice(self, invoice_id: int, changes: Changes) -> Invoice | None: ...

    @abstractmethod
    async def delete_invoice(self, invoice_id: int) -> bool: ...

    # --- Notifications ---

    @abstractmethod
    async def list_notifications(self) -> list[Notification]: ...

    @abstractmethod
    async def list_unread_notifications(self) -> list[Notification]: ...

    @abstractmethod
    async def create_notification(self, data: NotificationCreate) -> Notification: ...

    @abstractmethod
    async def mark_notification_read(self, notification_id: int) -> Notification | None: ...

    @abstractmethod
    async def mark_all_notifications_read(self) -> int: ...

    @abstractmethod
    async def delete_notification(self, notification_id: int) -> bool: ...

    # --- Singletons ---

    @abstractmethod
    async def get_bot_settings(self) -> BotSettings | None: ...

    @abstractmethod
    async def update_bot_settings(self, changes: Changes) -> BotSettings: ...

    @abstractmethod
    async def get_system_settings(self) -> SystemSettings | None: ...

    @abstractmethod
    async def update_system_settings(self, changes: Changes) -> SystemSettings: ...

    @abstractmethod
    async def get_admin_profile(self) -> AdminProfile | None: ...

    @abstractmethod
    async def upsert_admin_profile(self, changes: Changes) -> AdminProfile: ...

    async def ping(self) -> bool:
        """True when the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
