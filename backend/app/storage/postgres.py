"""SQLAlchemy async storage backed by PostgreSQL (asyncpg)."""
import logging
from enum import Enum

from sqlalchemy import func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import models
from core.errors import ConflictError
from models import Base, create_engine, create_session_factory
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
from storage.base import Changes, Storage

logger = logging.getLogger("fieldops.storage.postgres")

UNIQUE_FIELDS = {
    "users": ("username",),
    "technicians": ("telegram_id",),
    "tasks": ("task_id", "task_number"),
    "invoices": ("invoice_number",),
    "admin_profiles": ("username",),
}


def _plain(changes: Changes) -> Changes:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in changes.items()}


def _conflict(entity: str, table: str, exc: IntegrityError) -> ConflictError:
    detail = str(exc.orig)
    fields = UNIQUE_FIELDS.get(table, ("id",))
    for field in fields:
        if f"uq_{table}_{field}" in detail:
            return ConflictError(entity, field)
    return ConflictError(entity, fields[0])


def _notification(row: models.Notification) -> Notification:
    return Notification(
        id=row.id,
        type=row.type,
        message=row.message,
        metadata=row.metadata_,
        is_read=row.is_read,
        created_at=row.created_at,
    )


class PostgresStorage(Storage):

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.engine = engine
        self.session_factory = session_factory or create_session_factory(engine)

    @classmethod
    def from_url(cls, url: str, echo: bool = False, **engine_kwargs) -> "PostgresStorage":
        return cls(create_engine(url, echo=echo, **engine_kwargs))

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Schema ensured")

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OSError, SQLAlchemyError) as exc:
            logger.warning("Database ping failed: %s", exc)
            return False

    async def close(self) -> None:
        await self.engine.dispose()

    # --- generic helpers ---

    async def _all(self, stmt) -> list:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def _insert(self, entity: str, row):
        async with self.session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise _conflict(entity, row.__tablename__, exc) from exc
            await session.refresh(row)
            return row

    async def _update(self, entity: str, model, row_id: int, changes: Changes, touch: bool = True):
        async with self.session_factory() as session:
            row = await session.get(model, row_id)
            if row is None:
                return None
            for field, value in _plain(changes).items():
                setattr(row, field, value)
            if touch:
                row.updated_at = func.now()
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise _conflict(entity, model.__tablename__, exc) from exc
            await session.refresh(row)
            return row

    async def _delete(self, model, row_id: int) -> bool:
        async with self.session_factory() as session:
            row = await session.get(model, row_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    async def _get(self, model, row_id: int):
        async with self.session_factory() as session:
            return await session.get(model, row_id)

    async def _singleton(self, model):
        rows = await self._all(select(model).order_by(model.id).limit(1))
        return rows[0] if rows else None

    async def _upsert_singleton(self, entity: str, model, changes: Changes):
        current = await self._singleton(model)
        if current is None:
            return await self._insert(entity, model(**_plain(changes)))
        return await self._update(entity, model, current.id, changes)

    # --- Users ---

    async def get_user_by_username(self, username: str) -> User | None:
        rows = await self._all(select(models.User).where(models.User.username == username))
        return User.model_validate(rows[0]) if rows else None

    async def create_user(self, data: UserCreate) -> User:
        row = await self._insert("User", models.User(**data.model_dump()))
        return User.model_validate(row)

    # --- Technicians ---

    async def list_technicians(self) -> list[Technician]:
        rows = await self._all(
            select(models.Technician).order_by(
                models.Technician.joined_at.desc(), models.Technician.id.desc(),
            )
        )
        return [Technician.model_validate(r) for r in rows]

    async def get_technician(self, technician_id: int) -> Technician | None:
        row = await self._get(models.Technician, technician_id)
        return Technician.model_validate(row) if row else None

    async def get_technician_by_telegram_id(self, telegram_id: str) -> Technician | None:
        rows = await self._all(
            select(models.Technician).where(models.Technician.telegram_id == telegram_id)
        )
        return Technician.model_validate(rows[0]) if rows else None

    async def create_technician(self, data: TechnicianCreate) -> Technician:
        row = await self._insert("Technician", models.Technician(**data.model_dump()))
        return Technician.model_validate(row)

    async def update_technician(self, technician_id: int, changes: Changes) -> Technician | None:
        row = await self._update("Technician", models.Technician, technician_id, changes, touch=False)
        return Technician.model_validate(row) if row else None

    async def delete_technician(self, technician_id: int) -> bool:
        return await self._delete(models.Technician, technician_id)

    # --- Tasks ---

    def _tasks_query(self):
        return select(models.Task).order_by(models.Task.created_at.desc(), models.Task.id.desc())

    async def list_tasks(self) -> list[Task]:
        return [Task.model_validate(r) for r in await self._all(self._tasks_query())]

    async def get_task(self, task_id: int) -> Task | None:
        row = await self._get(models.Task, task_id)
        return Task.model_validate(row) if row else None

    async def list_tasks_by_status(self, status: TaskStatus) -> list[Task]:
        rows = await self._all(self._tasks_query().where(models.Task.status == TaskStatus(status).value))
        return [Task.model_validate(r) for r in rows]

    async def create_task(self, data: TaskCreate) -> Task:
        row = await self._insert("Task", models.Task(**data.model_dump(mode="json")))
        return Task.model_validate(row)

    async def update_task(self, task_id: int, changes: Changes) -> Task | None:
        row = await self._update("Task", models.Task, task_id, changes)
        return Task.model_validate(row) if row else None

    async def delete_task(self, task_id: int) -> bool:
        return await self._delete(models.Task, task_id)

    # --- Invoices ---

    async def list_invoices(self) -> list[Invoice]:
        rows = await self._all(
            select(models.Invoice).order_by(models.Invoice.created_at.desc(), models.Invoice.id.desc())
        )
        return [Invoice.model_validate(r) for r in rows]

    async def get_invoice(self, invoice_id: int) -> Invoice | None:
        row = await self._get(models.Invoice, invoice_id)
        return Invoice.model_validate(row) if row else None

    async def list_invoices_by_technician(self, technician_id: int) -> list[Invoice]:
        rows = await self._all(
            select(models.Invoice)
            .where(models.Invoice.technician_id == technician_id)
            .order_by(models.Invoice.created_at.desc(), models.Invoice.id.desc())
        )
        return [Invoice.model_validate(r) for r in rows]

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        row = await self._insert("Invoice", models.Invoice(**data.model_dump(mode="json")))
        return Invoice.model_validate(row)

    async def update_invoice(self, invoice_id: int, changes: Changes) -> Invoice | None:
        row = await self._update("Invoice", models.Invoice, invoice_id, changes)
        return Invoice.model_validate(row) if row else None

    async def delete_invoice(self, invoice_id: int) -> bool:
        return await self._delete(models.Invoice, invoice_id)

    # --- Notifications ---

    def _notifications_query(self):
        return select(models.Notification).order_by(
            models.Notification.created_at.desc(), models.Notification.id.desc(),
        )

    async def list_notifications(self) -> list[Notification]:
        return [_notification(r) for r in await self._all(self._notifications_query())]

    async def list_unread_notifications(self) -> list[Notification]:
        rows = await self._all(
            self._notifications_query().where(models.Notification.is_read.is_(False))
        )
        return [_notification(r) for r in rows]

    async def create_notification(self, data: NotificationCreate) -> Notification:
        row = models.Notification(
            type=data.type,
            message=data.message,
            metadata_=data.metadata,
            is_read=data.is_read,
        )
        return _notification(await self._insert("Notification", row))

    async def mark_notification_read(self, notification_id: int) -> Notification | None:
        row = await self._update(
            "Notification", models.Notification, notification_id, {"is_read": True}, touch=False,
        )
        return _notification(row) if row else None

    async def mark_all_notifications_read(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                update(models.Notification)
                .where(models.Notification.is_read.is_(False))
                .values(is_read=True)
            )
            await session.commit()
            return result.rowcount or 0

    async def delete_notification(self, notification_id: int) -> bool:
        return await self._delete(models.Notification, notification_id)

    # --- Singletons ---

    async def get_bot_settings(self) -> BotSettings | None:
        row = await self._singleton(models.BotSettings)
        return BotSettings.model_validate(row) if row else None

    async def update_bot_settings(self, changes: Changes) -> BotSettings:
        row = await self._upsert_singleton("BotSettings", models.BotSettings, changes)
        return BotSettings.model_validate(row)

    async def get_system_settings(self) -> SystemSettings | None:
        row = await self._singleton(models.SystemSettings)
        return SystemSettings.model_validate(row) if row else None

    async def update_system_settings(self, changes: Changes) -> SystemSettings:
        row = await self._upsert_singleton("SystemSettings", models.SystemSettings, changes)
        return SystemSettings.model_validate(row)

    async def get_admin_profile(self) -> AdminProfile | None:
        row = await self._singleton(models.AdminProfile)
        return AdminProfile.model_validate(row) if row else None

    async def upsert_admin_profile(self, changes: Changes) -> AdminProfile:
        row = await self._upsert_singleton("AdminProfile", models.AdminProfile, changes)
        return AdminProfile.model_validate(row)
