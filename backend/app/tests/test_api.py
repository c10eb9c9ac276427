"""
HTTP API tests (FastAPI TestClient, in-memory storage, recording gateway).
"""
import pytest
from fastapi.testclient import TestClient

from config import settings
from main import Services, create_app
from services.notification_relay import NotificationRelay
from services.task_lifecycle import TaskLifecycle
from storage import InMemoryStorage

from conftest import RecordingGateway

TASK = {
    "taskId": "T-1",
    "taskNumber": "1001",
    "title": "Fix heating",
    "description": "Radiator in the kitchen is cold",
    "clientName": "Erika Musterfrau",
    "clientPhone": "+4917000000",
    "location": "Hauptstr. 1, Berlin",
    "scheduledDate": "2026-10-20",
    "scheduledTimeFrom": "09:00",
    "scheduledTimeTo": "11:00",
}


def build(gateway=None) -> Services:
    storage = InMemoryStorage()
    relay = NotificationRelay(storage)
    gateway = gateway or RecordingGateway()
    return Services(storage, relay, gateway, TaskLifecycle(storage, relay, gateway))


@pytest.fixture
def services():
    return build()


@pytest.fixture
def client(services):
    app = create_app(services, auth_enabled=False, start_bot=False)
    with TestClient(app) as c:
        yield c


def technician(client, telegram_id="555001") -> dict:
    resp = client.post("/api/technicians", json={"telegramId": telegram_id, "firstName": "Jonas"})
    assert resp.status_code == 201
    return resp.json()


class TestTasks:
    """Task CRUD and dispatch endpoints."""

    def test_create_then_list(self, client):
        tech = technician(client)
        created = client.post("/api/tasks", json={**TASK, "technicianIds": [tech["id"]]})

        assert created.status_code == 201
        body = created.json()
        assert body["taskId"] == "T-1"
        assert body["status"] == "pending"
        assert body["paymentStatus"] == "on_demand"
        assert body["technicianIds"] == [1]

        listed = client.get("/api/tasks").json()
        assert [(t["taskId"], t["status"]) for t in listed] == [("T-1", "pending")]

    def test_filter_by_status(self, client):
        client.post("/api/tasks", json=TASK)

        assert client.get("/api/tasks", params={"status": "sent"}).json() == []
        assert len(client.get("/api/tasks", params={"status": "pending"}).json()) == 1

    def test_delete_missing_is_404(self, client):
        resp = client.delete("/api/tasks/999")

        assert resp.status_code == 404
        assert resp.json() == {"message": "Task not found", "errors": []}

    def test_delete(self, client):
        task = client.post("/api/tasks", json=TASK).json()

        assert client.delete(f"/api/tasks/{task['id']}").status_code == 204
        assert client.get(f"/api/tasks/{task['id']}").status_code == 404

    def test_validation_error_body(self, client):
        resp = client.post("/api/tasks", json={"taskId": "T-1"})

        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Invalid request data"
        assert "taskNumber" in [e["field"] for e in body["errors"]]

    def test_unknown_field_rejected(self, client):
        resp = client.post("/api/tasks", json={**TASK, "priority": "high"})

        assert resp.status_code == 400

    def test_duplicate_task_id_conflicts(self, client):
        client.post("/api/tasks", json=TASK)

        resp = client.post("/api/tasks", json={**TASK, "taskNumber": "1002"})

        assert resp.status_code == 409
        assert resp.json()["errors"][0]["field"] == "task_id"

    def test_unknown_technician_ids(self, client):
        resp = client.post("/api/tasks", json={**TASK, "technicianIds": [3, 7]})

        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "technicianIds"

    def test_technician_ids_deduplicated(self, client):
        a = technician(client, "1")
        b = technician(client, "2")

        resp = client.post("/api/tasks", json={**TASK, "technicianIds": [b["id"], a["id"], b["id"]]})

        assert resp.json()["technicianIds"] == [b["id"], a["id"]]

    def test_update_status(self, client):
        task = client.post("/api/tasks", json=TASK).json()

        resp = client.put(f"/api/tasks/{task['id']}", json={"status": "in_progress"})

        assert resp.status_code == 200
        assert resp.json()["status"] == "in_progress"
        types = [n["type"] for n in client.get("/api/notifications").json()]
        assert "task_status_changed" in types

    def test_dispatch_without_technicians(self, client, services):
        task = client.post("/api/tasks", json=TASK).json()

        resp = client.post(f"/api/tasks/{task['id']}/dispatch")

        assert resp.status_code == 400
        assert "No technicians assigned" in resp.json()["message"]
        assert services.gateway.task_sends == []

    def test_dispatch(self, client, services):
        tech = technician(client)
        task = client.post("/api/tasks", json={**TASK, "technicianIds": [tech["id"]]}).json()

        resp = client.post(f"/api/tasks/{task['id']}/dispatch")

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["sentTo"] == [tech["id"]]
        assert body["task"]["status"] == "sent"

    def test_send_client_data_before_acceptance(self, client):
        tech = technician(client)
        task = client.post("/api/tasks", json={**TASK, "technicianIds": [tech["id"]]}).json()

        resp = client.post(f"/api/tasks/{task['id']}/send-client-data")

        assert resp.status_code == 409

    def test_send_general_data(self, client):
        task = client.post("/api/tasks", json=TASK).json()

        resp = client.post(f"/api/tasks/{task['id']}/send-general-data")

        assert resp.json()["success"] is True


class TestTechniciansAndInvoices:

    def test_duplicate_telegram_id(self, client):
        technician(client)

        resp = client.post("/api/technicians", json={"telegramId": "555001", "firstName": "Other"})

        assert resp.status_code == 409

    def test_delete_technician_unassigns_tasks(self, client, services):
        a = technician(client, "1")
        b = technician(client, "2")
        task = client.post("/api/tasks", json={**TASK, "technicianIds": [a["id"], b["id"]]}).json()

        assert client.delete(f"/api/technicians/{b['id']}").status_code == 204

        stored = client.get(f"/api/tasks/{task['id']}").json()
        assert stored["technicianIds"] == [a["id"]]
        resaved = client.put(f"/api/tasks/{task['id']}", json={"technicianIds": stored["technicianIds"]})
        assert resaved.status_code == 200

        client.post(f"/api/tasks/{task['id']}/dispatch")
        assert services.gateway.task_sends == [(task["id"], a["id"])]

    def test_delete_missing_technician(self, client):
        assert client.delete("/api/technicians/999").status_code == 404

    def test_invoice_requires_known_technician(self, client):
        resp = client.post("/api/invoices", json={
            "invoiceNumber": "INV-1", "taskId": "T-1", "technicianId": 42, "amount": 100,
            "paymentMethods": ["cash"], "issueDate": "2026-10-01", "dueDate": "2026-10-15",
            "clientName": "Erika",
        })

        assert resp.status_code == 400

    def test_invoice_amount_must_be_positive(self, client):
        tech = technician(client)

        resp = client.post("/api/invoices", json={
            "invoiceNumber": "INV-1", "taskId": "T-1", "technicianId": tech["id"], "amount": 0,
            "paymentMethods": ["cash"], "issueDate": "2026-10-01", "dueDate": "2026-10-15",
            "clientName": "Erika",
        })

        assert resp.status_code == 400

    def test_technician_invoices(self, client):
        tech = technician(client)
        client.post("/api/invoices", json={
            "invoiceNumber": "INV-1", "taskId": "T-1", "technicianId": tech["id"], "amount": 120.5,
            "paymentMethods": ["cash", "card"], "issueDate": "2026-10-01", "dueDate": "2026-10-15",
            "clientName": "Erika",
        })

        invoices = client.get(f"/api/technicians/{tech['id']}/invoices").json()

        assert invoices[0]["amount"] == 120.5
        assert invoices[0]["paymentMethods"] == ["cash", "card"]


class TestNotifications:

    def test_bulk_delete_and_mark_all(self, client):
        client.post("/api/tasks", json=TASK)
        client.post("/api/tasks", json={**TASK, "taskId": "T-2", "taskNumber": "1002"})
        notifications = client.get("/api/notifications").json()
        assert len(notifications) == 2

        marked = client.post("/api/notifications/mark-all-read").json()
        assert marked["markedCount"] == 2
        assert client.get("/api/notifications/unread").json() == []

        deleted = client.post(
            "/api/notifications/bulk-delete", json={"ids": [notifications[0]["id"], 999]},
        ).json()
        assert deleted["deletedCount"] == 1

    def test_mark_missing_read(self, client):
        assert client.patch("/api/notifications/999/read").status_code == 404

    def test_websocket_receives_new_notifications(self, client):
        with client.websocket_connect("/ws/notifications") as ws:
            ws.send_text("ping")
            assert ws.receive_text() == "pong"

            client.post("/api/tasks", json=TASK)

            event = ws.receive_json()
            assert event["type"] == "notification"
            assert event["data"]["type"] == "task_created"


class TestDashboardAndSettings:

    def test_stats(self, client):
        technician(client)
        client.post("/api/tasks", json=TASK)

        stats = client.get("/api/dashboard/stats").json()

        assert stats["activeTasks"] == 1
        assert stats["totalTechnicians"] == 1
        assert stats["activeTechnicians"] == 1
        assert stats["pendingInvoices"] == 0
        assert stats["monthlyRevenue"] == 0

    def test_database_status(self, client):
        body = client.get("/api/database/status").json()

        assert body["connected"] is True

    def test_seeded_system_settings(self, client):
        body = client.get("/api/system-settings").json()

        assert body["language"] == settings.DEFAULT_LANGUAGE

        updated = client.put("/api/system-settings", json={"language": "ar", "rtlEnabled": True}).json()
        assert updated["language"] == "ar"
        assert updated["rtlEnabled"] is True

    def test_disabling_bot_stops_gateway(self, client, services):
        resp = client.put("/api/bot-settings", json={"isEnabled": False})

        assert resp.status_code == 200
        assert resp.json()["isEnabled"] is False
        assert services.gateway.is_connected is False

    def test_backup(self, client, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "BACKUP_DIR", str(tmp_path))
        client.post("/api/tasks", json=TASK)

        created = client.post("/api/backup/create").json()
        assert created["success"] is True

        download = client.get(f"/api/backup/download/{created['filename']}")
        assert download.status_code == 200
        assert download.json()["metadata"]["counts"]["tasks"] == 1

        assert client.get("/api/backup/download/secrets.json").status_code == 404


class TestTelegramEndpoints:

    def test_send_invoice_failure(self, services):
        services.gateway.result = False
        app = create_app(services, auth_enabled=False, start_bot=False)
        with TestClient(app) as client:
            tech = technician(client)
            invoice = client.post("/api/invoices", json={
                "invoiceNumber": "INV-1", "taskId": "T-1", "technicianId": tech["id"], "amount": 10,
                "paymentMethods": ["cash"], "issueDate": "2026-10-01", "dueDate": "2026-10-15",
                "clientName": "Erika",
            }).json()

            resp = client.post("/api/telegram/send-invoice", json={"invoiceId": invoice["id"]})

            assert resp.status_code == 400
            assert client.get(f"/api/invoices/{invoice['id']}").json()["status"] == "pending"

    def test_send_invoice_pdf(self, client, services):
        resp = client.post(
            "/api/telegram/send-invoice-pdf",
            data={"technicianId": "555001", "invoiceNumber": "INV-7", "message": "Your invoice"},
            files={"pdf": ("invoice.pdf", b"%PDF-1.4 test", "application/pdf")},
        )

        assert resp.status_code == 200
        assert resp.json()["fileName"] == "Rechnung_INV-7.pdf"
        assert services.gateway.pdf_sends == [("555001", "Rechnung_INV-7.pdf")]

    def test_send_invoice_pdf_too_large(self, client, services, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)

        resp = client.post(
            "/api/telegram/send-invoice-pdf",
            data={"technicianId": "555001", "invoiceNumber": "INV-8"},
            files={"pdf": ("invoice.pdf", b"%PDF-1.4 oversized", "application/pdf")},
        )

        assert resp.status_code == 413
        assert services.gateway.pdf_sends == []

    def test_send_invoice_pdf_rejects_other_types(self, client):
        resp = client.post(
            "/api/telegram/send-invoice-pdf",
            data={"technicianId": "555001", "invoiceNumber": "INV-7"},
            files={"pdf": ("notes.txt", b"hello", "text/plain")},
        )

        assert resp.status_code == 400


class TestAuth:
    """Login and bearer tokens with auth enabled."""

    @pytest.fixture
    def secured(self, services):
        app = create_app(services, auth_enabled=True, start_bot=False)
        with TestClient(app) as c:
            yield c

    def test_requires_token(self, secured):
        resp = secured.get("/api/tasks")

        assert resp.status_code == 401
        assert resp.json()["message"] == "Not authenticated"

    def test_login_and_use_token(self, secured):
        resp = secured.post("/api/auth/login", json={
            "username": settings.DEFAULT_ADMIN_USERNAME,
            "password": settings.DEFAULT_ADMIN_PASSWORD,
        })
        assert resp.status_code == 200
        token = resp.json()["accessToken"]

        listed = secured.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
        assert listed.status_code == 200

    def test_wrong_password(self, secured):
        resp = secured.post("/api/auth/login", json={
            "username": settings.DEFAULT_ADMIN_USERNAME, "password": "wrong",
        })

        assert resp.status_code == 401

    def test_system_settings_are_public(self, secured):
        assert secured.get("/api/system-settings").status_code == 200

    def test_password_change_requires_current(self, secured):
        token = secured.post("/api/auth/login", json={
            "username": settings.DEFAULT_ADMIN_USERNAME,
            "password": settings.DEFAULT_ADMIN_PASSWORD,
        }).json()["accessToken"]
        headers = {"Authorization": f"Bearer {token}"}

        resp = secured.put("/api/admin/profile", headers=headers, json={
            "currentPassword": "nope", "newPassword": "secret99", "confirmPassword": "secret99",
        })
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "currentPassword"

        resp = secured.put("/api/admin/profile", headers=headers, json={
            "currentPassword": settings.DEFAULT_ADMIN_PASSWORD,
            "newPassword": "secret99",
            "confirmPassword": "secret99",
        })
        assert resp.status_code == 200
        assert "passwordHash" not in resp.json()
