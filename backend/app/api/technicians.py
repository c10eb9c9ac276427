from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_relay, get_storage
from core.security import require_admin
from schemas import Invoice, Task, Technician, TechnicianCreate, TechnicianUpdate
from services.notification_relay import NotificationRelay
from services.technicians import add_technician, remove_technician
from storage import Storage

router = APIRouter(prefix="/api/technicians", tags=["technicians"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[Technician])
async def list_technicians(storage: Storage = Depends(get_storage)):
    return await storage.list_technicians()


@router.get("/{technician_id}", response_model=Technician)
async def get_technician(technician_id: int, storage: Storage = Depends(get_storage)):
    technician = await storage.get_technician(technician_id)
    if not technician:
        raise HTTPException(404, "Technician not found")
    return technician


@router.get("/{technician_id}/tasks", response_model=list[Task])
async def technician_tasks(technician_id: int, storage: Storage = Depends(get_storage)):
    if not await storage.get_technician(technician_id):
        raise HTTPException(404, "Technician not found")
    return await storage.list_tasks_by_technician(technician_id)


@router.get("/{technician_id}/invoices", response_model=list[Invoice])
async def technician_invoices(technician_id: int, storage: Storage = Depends(get_storage)):
    if not await storage.get_technician(technician_id):
        raise HTTPException(404, "Technician not found")
    return await storage.list_invoices_by_technician(technician_id)


@router.post("", response_model=Technician, status_code=201)
async def create_technician(
    data: TechnicianCreate,
    storage: Storage = Depends(get_storage),
    relay: NotificationRelay = Depends(get_relay),
):
    return await add_technician(storage, relay, data)


@router.put("/{technician_id}", response_model=Technician)
async def update_technician(
    technician_id: int,
    data: TechnicianUpdate,
    storage: Storage = Depends(get_storage),
):
    technician = await storage.update_technician(technician_id, data.changes())
    if not technician:
        raise HTTPException(404, "Technician not found")
    return technician


@router.delete("/{technician_id}", status_code=204)
async def delete_technician(technician_id: int, storage: Storage = Depends(get_storage)):
    if not await remove_technician(storage, technician_id):
        raise HTTPException(404, "Technician not found")
