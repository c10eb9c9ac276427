from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_relay, get_storage
from core.errors import DomainValidationError
from core.security import require_admin
from schemas import Invoice, InvoiceCreate, InvoiceUpdate
from services.notification_relay import NotificationRelay
from storage import Storage

router = APIRouter(prefix="/api/invoices", tags=["invoices"], dependencies=[Depends(require_admin)])


async def _check_technician(storage: Storage, technician_id: int) -> None:
    if await storage.get_technician(technician_id) is None:
        raise DomainValidationError(f"Unknown technician id: {technician_id}", ["technicianId"])


@router.get("", response_model=list[Invoice])
async def list_invoices(storage: Storage = Depends(get_storage)):
    return await storage.list_invoices()


@router.get("/{invoice_id}", response_model=Invoice)
async def get_invoice(invoice_id: int, storage: Storage = Depends(get_storage)):
    invoice = await storage.get_invoice(invoice_id)
    if not invoice:
        raise HTTPException(404, "Invoice not found")
    return invoice


@router.post("", response_model=Invoice, status_code=201)
async def create_invoice(
    data: InvoiceCreate,
    storage: Storage = Depends(get_storage),
    relay: NotificationRelay = Depends(get_relay),
):
    await _check_technician(storage, data.technician_id)
    invoice = await storage.create_invoice(data)
    await relay.notify(
        "invoice_created",
        f"New invoice created: {invoice.invoice_number}",
        {"invoiceId": invoice.id},
    )
    return invoice


@router.put("/{invoice_id}", response_model=Invoice)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    storage: Storage = Depends(get_storage),
):
    changes = data.changes()
    if "technician_id" in changes:
        await _check_technician(storage, changes["technician_id"])
    invoice = await storage.update_invoice(invoice_id, changes)
    if not invoice:
        raise HTTPException(404, "Invoice not found")
    return invoice


@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(invoice_id: int, storage: Storage = Depends(get_storage)):
    if not await storage.delete_invoice(invoice_id):
        raise HTTPException(404, "Invoice not found")
