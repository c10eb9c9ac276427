"""Dict-backed storage for development and tests. Data is lost on restart."""
import itertools
import logging

from pydantic import BaseModel

from core.errors import ConflictError
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
    utcnow,
)
from storage.base import Changes, Storage

logger = logging.getLogger("fieldops.storage.memory")


def _newest_first(records, field: str = "created_at"):
    return sorted(records, key=lambda r: (getattr(r, field), r.id), reverse=True)


class InMemoryStorage(Storage):

    def __init__(self) -> None:
        self._users: dict[int, User] = {}
        self._technicians: dict[int, Technician] = {}
        self._tasks: dict[int, Task] = {}
        self._invoices: dict[int, Invoice] = {}
        self._notifications: dict[int, Notification] = {}
        self._bot_settings: BotSettings | None = None
        self._system_settings: SystemSettings | None = None
        self._admin_profile: AdminProfile | None = None
        self._ids: dict[str, itertools.count] = {}

    def _next_id(self, entity: str) -> int:
        return next(self._ids.setdefault(entity, itertools.count(1)))

    @staticmethod
    def _out(record):
        return record.model_copy(deep=True) if record is not None else None

    @staticmethod
    def _merge(record: BaseModel, changes: Changes, touch: bool = True):
        data = {name: getattr(record, name) for name in type(record).model_fields}
        data.update(changes)
        if touch:
            data["updated_at"] = utcnow()
        return type(record).model_validate(data)

    def _check_unique(self, entity: str, table: dict, field: str, value, exclude_id: int | None = None):
        for rec in table.values():
            if rec.id != exclude_id and getattr(rec, field) == value:
                raise ConflictError(entity, field, value)

    # --- Users ---

    async def get_user_by_username(self, username: str) -> User | None:
        for user in self._users.values():
            if user.username == username:
                return self._out(user)
        return None

    async def create_user(self, data: UserCreate) -> User:
        self._check_unique("User", self._users, "username", data.username)
        user = User(id=self._next_id("users"), created_at=utcnow(), **data.model_dump())
        self._users[user.id] = user
        return self._out(user)

    # --- Technicians ---

    async def list_technicians(self) -> list[Technician]:
        return [self._out(t) for t in _newest_first(self._technicians.values(), "joined_at")]

    async def get_technician(self, technician_id: int) -> Technician | None:
        return self._out(self._technicians.get(technician_id))

    async def get_technician_by_telegram_id(self, telegram_id: str) -> Technician | None:
        for tech in self._technicians.values():
            if tech.telegram_id == telegram_id:
                return self._out(tech)
        return None

    async def create_technician(self, data: TechnicianCreate) -> Technician:
        self._check_unique("Technician", self._technicians, "telegram_id", data.telegram_id)
        tech = Technician(id=self._next_id("technicians"), joined_at=utcnow(), **data.model_dump())
        self._technicians[tech.id] = tech
        return self._out(tech)

    async def update_technician(self, technician_id: int, changes: Changes) -> Technician | None:
        tech = self._technicians.get(technician_id)
        if tech is None:
            return None
        if "telegram_id" in changes:
            self._check_unique(
                "Technician", self._technicians, "telegram_id", changes["telegram_id"], technician_id,
            )
        tech = self._merge(tech, changes, touch=False)
        self._technicians[technician_id] = tech
        return self._out(tech)

    async def delete_technician(self, technician_id: int) -> bool:
        return self._technicians.pop(technician_id, None) is not None

    # --- Tasks ---

    async def list_tasks(self) -> list[Task]:
        return [self._out(t) for t in _newest_first(self._tasks.values())]

    async def get_task(self, task_id: int) -> Task | None:
        return self._out(self._tasks.get(task_id))

    async def list_tasks_by_status(self, status: TaskStatus) -> list[Task]:
        return [t for t in await self.list_tasks() if t.status == status]

    async def create_task(self, data: TaskCreate) -> Task:
        self._check_unique("Task", self._tasks, "task_id", data.task_id)
        self._check_unique("Task", self._tasks, "task_number", data.task_number)
        now = utcnow()
        task = Task(id=self._next_id("tasks"), created_at=now, updated_at=now, **data.model_dump())
        self._tasks[task.id] = task
        return self._out(task)

    async def update_task(self, task_id: int, changes: Changes) -> Task | None:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        for field in ("task_id", "task_number"):
            if field in changes:
                self._check_unique("Task", self._tasks, field, changes[field], task_id)
        task = self._merge(task, changes)
        self._tasks[task_id] = task
        return self._out(task)

    async def delete_task(self, task_id: int) -> bool:
        return self._tasks.pop(task_id, None) is not None

    # --- Invoices ---

    async def list_invoices(self) -> list[Invoice]:
        return [self._out(i) for i in _newest_first(self._invoices.values())]

    async def get_invoice(self, invoice_id: int) -> Invoice | None:
        return self._out(self._invoices.get(invoice_id))

    async def list_invoices_by_technician(self, technician_id: int) -> list[Invoice]:
        return [i for i in await self.list_invoices() if i.technician_id == technician_id]

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        self._check_unique("Invoice", self._invoices, "invoice_number", data.invoice_number)
        now = utcnow()
        invoice = Invoice(id=self._next_id("invoices"), created_at=now, updated_at=now, **data.model_dump())
        self._invoices[invoice.id] = invoice
        return self._out(invoice)

    async def update_invoice(self, invoice_id: int, changes: Changes) -> Invoice | None:
        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            return None
        if "invoice_number" in changes:
            self._check_unique(
                "Invoice", self._invoices, "invoice_number", changes["invoice_number"], invoice_id,
            )
        invoice = self._merge(invoice, changes)
        self._invoices[invoice_id] = invoice
        return self._out(invoice)

    async def delete_invoice(self, invoice_id: int) -> bool:
        return self._invoices.pop(invoice_id, None) is not None

    # --- Notifications ---

    async def list_notifications(self) -> list[Notification]:
        return [self._out(n) for n in _newest_first(self._notifications.values())]

    async def list_unread_notifications(self) -> list[Notification]:
        return [n for n in await self.list_notifications() if not n.is_read]

    async def create_notification(self, data: NotificationCreate) -> Notification:
        notification = Notification(
            id=self._next_id("notifications"), created_at=utcnow(), **data.model_dump(),
        )
        self._notifications[notification.id] = notification
        return self._out(notification)

    async def mark_notification_read(self, notification_id: int) -> Notification | None:
        notification = self._notifications.get(notification_id)
        if notification is None:
            return None
        notification = notification.model_copy(update={"is_read": True})
        self._notifications[notification_id] = notification
        return self._out(notification)

    async def mark_all_notifications_read(self) -> int:
        marked = 0
        for nid, notification in list(self._notifications.items()):
            if not notification.is_read:
                self._notifications[nid] = notification.model_copy(update={"is_read": True})
                marked += 1
        return marked

    async def delete_notification(self, notification_id: int) -> bool:
        return self._notifications.pop(notification_id, None) is not None

    # --- Singletons ---

    async def get_bot_settings(self) -> BotSettings | None:
        return self._out(self._bot_settings)

    async def update_bot_settings(self, changes: Changes) -> BotSettings:
        if self._bot_settings is None:
            self._bot_settings = BotSettings.model_validate(
                {"id": self._next_id("bot_settings"), "updated_at": utcnow(), **changes}
            )
        else:
            self._bot_settings = self._merge(self._bot_settings, changes)
        return self._out(self._bot_settings)

    async def get_system_settings(self) -> SystemSettings | None:
        return self._out(self._system_settings)

    async def update_system_settings(self, changes: Changes) -> SystemSettings:
        if self._system_settings is None:
            now = utcnow()
            self._system_settings = SystemSettings.model_validate(
                {"id": self._next_id("system_settings"), "created_at": now, "updated_at": now, **changes}
            )
        else:
            self._system_settings = self._merge(self._system_settings, changes)
        return self._out(self._system_settings)

    async def get_admin_profile(self) -> AdminProfile | None:
        return self._out(self._admin_profile)

    async def upsert_admin_profile(self, changes: Changes) -> AdminProfile:
        if self._admin_profile is None:
            now = utcnow()
            self._admin_profile = AdminProfile.model_validate(
                {"id": self._next_id("admin_profiles"), "created_at": now, "updated_at": now, **changes}
            )
        else:
            self._admin_profile = self._merge(self._admin_profile, changes)
        return self._out(self._admin_profile)
