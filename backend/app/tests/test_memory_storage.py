"""
Tests for the in-memory storage backend.
"""
import pytest

from core.errors import ConflictError
from schemas import InvoiceCreate, NotificationCreate, TaskStatus, UserCreate

from conftest import make_task, make_technician


class TestTechnicians:
    """Technician CRUD and unique telegram ids."""

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, storage):
        tech = await storage.create_technician(make_technician())

        assert tech.id == 1
        assert tech.joined_at is not None
        assert (await storage.get_technician(tech.id)).first_name == "Jonas"
        assert (await storage.get_technician_by_telegram_id("555001")).id == tech.id

    @pytest.mark.asyncio
    async def test_duplicate_telegram_id_conflicts(self, storage):
        await storage.create_technician(make_technician())

        with pytest.raises(ConflictError) as exc_info:
            await storage.create_technician(make_technician(first_name="Other"))

        assert exc_info.value.status_code == 409
        assert len(await storage.list_technicians()) == 1

    @pytest.mark.asyncio
    async def test_update_to_taken_telegram_id_conflicts(self, storage):
        await storage.create_technician(make_technician())
        second = await storage.create_technician(make_technician(telegram_id="555002"))

        with pytest.raises(ConflictError):
            await storage.update_technician(second.id, {"telegram_id": "555001"})

    @pytest.mark.asyncio
    async def test_missing_ids(self, storage):
        assert await storage.get_technician(42) is None
        assert await storage.update_technician(42, {"first_name": "X"}) is None
        assert await storage.delete_technician(42) is False

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, storage):
        tech = await storage.create_technician(make_technician())
        tech.first_name = "Mutated"

        assert (await storage.get_technician(tech.id)).first_name == "Jonas"


class TestTasks:
    """Task CRUD, filters and timestamps."""

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, storage):
        task = await storage.create_task(make_task(technician_ids=[3, 7]))

        assert task.id == 1
        assert task.status == TaskStatus.PENDING
        assert task.technician_ids == [3, 7]
        assert task.created_at == task.updated_at

    @pytest.mark.asyncio
    async def test_update_refreshes_updated_at(self, storage):
        task = await storage.create_task(make_task())

        updated = await storage.update_task(task.id, {"status": TaskStatus.SENT})

        assert updated.status == TaskStatus.SENT
        assert updated.updated_at >= task.updated_at
        assert updated.created_at == task.created_at
        assert updated.title == task.title

    @pytest.mark.asyncio
    async def test_list_newest_first(self, storage):
        first = await storage.create_task(make_task(task_id="T-1"))
        second = await storage.create_task(make_task(task_id="T-2"))

        ids = [t.id for t in await storage.list_tasks()]

        assert ids == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_filters(self, storage):
        await storage.create_task(make_task(task_id="T-1", technician_ids=[1]))
        sent = await storage.create_task(make_task(task_id="T-2", technician_ids=[2, 3]))
        await storage.update_task(sent.id, {"status": TaskStatus.SENT})

        by_status = await storage.list_tasks_by_status(TaskStatus.SENT)
        by_tech = await storage.list_tasks_by_technician(3)
        by_techs = await storage.list_tasks_by_technicians([1, 3])

        assert [t.task_id for t in by_status] == ["T-2"]
        assert [t.task_id for t in by_tech] == ["T-2"]
        assert sorted(t.task_id for t in by_techs) == ["T-1", "T-2"]

    @pytest.mark.asyncio
    async def test_delete(self, storage):
        task = await storage.create_task(make_task())

        assert await storage.delete_task(task.id) is True
        assert await storage.delete_task(task.id) is False
        assert await storage.get_task(task.id) is None


class TestInvoices:
    """Invoices and unique invoice numbers."""

    @staticmethod
    def _invoice(**overrides) -> InvoiceCreate:
        data = {
            "invoice_number": "INV-1",
            "task_id": "T-1",
            "technician_id": 1,
            "amount": 150.5,
            "payment_methods": ["cash"],
            "issue_date": "2026-10-01",
            "due_date": "2026-10-15",
            "client_name": "Erika Musterfrau",
        }
        data.update(overrides)
        return InvoiceCreate(**data)

    @pytest.mark.asyncio
    async def test_create_and_filter_by_technician(self, storage):
        await storage.create_invoice(self._invoice())
        await storage.create_invoice(self._invoice(invoice_number="INV-2", technician_id=2))

        invoices = await storage.list_invoices_by_technician(2)

        assert [i.invoice_number for i in invoices] == ["INV-2"]
        assert invoices[0].amount == 150.5

    @pytest.mark.asyncio
    async def test_duplicate_number_conflicts(self, storage):
        await storage.create_invoice(self._invoice())

        with pytest.raises(ConflictError):
            await storage.create_invoice(self._invoice())


class TestNotifications:
    """Ordering and read flags."""

    @pytest.mark.asyncio
    async def test_newest_first_with_id_tiebreak(self, storage):
        for i in range(3):
            await storage.create_notification(NotificationCreate(type="test", message=f"m{i}"))

        ids = [n.id for n in await storage.list_notifications()]

        assert ids == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_mark_read_and_mark_all(self, storage):
        for i in range(3):
            await storage.create_notification(NotificationCreate(type="test", message=f"m{i}"))

        read = await storage.mark_notification_read(1)
        assert read.is_read is True
        assert await storage.mark_notification_read(99) is None

        assert await storage.mark_all_notifications_read() == 2
        assert await storage.list_unread_notifications() == []
        assert await storage.mark_all_notifications_read() == 0

    @pytest.mark.asyncio
    async def test_delete(self, storage):
        n = await storage.create_notification(NotificationCreate(type="test", message="m"))

        assert await storage.delete_notification(n.id) is True
        assert await storage.delete_notification(n.id) is False


class TestSingletons:
    """Settings rows and the admin profile."""

    @pytest.mark.asyncio
    async def test_bot_settings_upsert_keeps_single_row(self, storage):
        assert await storage.get_bot_settings() is None

        first = await storage.update_bot_settings({"bot_token": "abc"})
        second = await storage.update_bot_settings({"is_enabled": True})

        assert first.id == second.id
        assert second.bot_token == "abc"
        assert second.is_enabled is True

    @pytest.mark.asyncio
    async def test_admin_profile_keeps_password_hash(self, storage):
        await storage.upsert_admin_profile({
            "username": "admin", "email": "admin@example.com", "password_hash": "hash",
        })

        profile = await storage.upsert_admin_profile({"display_name": "Office"})

        assert profile.password_hash == "hash"
        assert profile.display_name == "Office"
        assert "password_hash" not in profile.model_dump()

    @pytest.mark.asyncio
    async def test_users(self, storage):
        await storage.create_user(UserCreate(username="ops", password_hash="h"))

        assert (await storage.get_user_by_username("ops")).role == "admin"
        assert await storage.get_user_by_username("nobody") is None
        with pytest.raises(ConflictError):
            await storage.create_user(UserCreate(username="ops", password_hash="h"))
