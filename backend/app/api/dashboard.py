from fastapi import APIRouter, Depends

from api.deps import get_storage
from config import settings
from core.security import require_admin
from schemas import InvoiceStatus, TaskStatus
from storage import Storage

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_admin)])


@router.get("/api/dashboard/stats")
async def dashboard_stats(storage: Storage = Depends(get_storage)):
    tasks = await storage.list_tasks()
    technicians = await storage.list_technicians()
    invoices = await storage.list_invoices()
    return {
        "activeTasks": sum(1 for t in tasks if t.status != TaskStatus.COMPLETED),
        "totalTechnicians": len(technicians),
        "activeTechnicians": sum(1 for t in technicians if t.is_active),
        "pendingInvoices": sum(1 for i in invoices if i.status == InvoiceStatus.PENDING),
        "monthlyRevenue": round(sum(i.amount for i in invoices if i.status == InvoiceStatus.PAID), 2),
    }


@router.get("/api/database/status")
async def database_status(storage: Storage = Depends(get_storage)):
    connected = await storage.ping()
    return {
        "backend": settings.STORAGE_BACKEND,
        "connected": connected,
        "status": "connected" if connected else "unreachable",
    }
