import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from api.deps import get_gateway, get_lifecycle, get_storage
from config import settings
from core.security import require_admin
from schemas import CamelInput
from services.task_lifecycle import TaskLifecycle
from services.telegram import GatewayInitError, TelegramGateway
from services.telegram.config import INVOICE_PDF_NAME
from storage import Storage

logger = logging.getLogger("fieldops.api.telegram")

router = APIRouter(prefix="/api/telegram", tags=["telegram"], dependencies=[Depends(require_admin)])


# --- Schemas ---

class SendTaskRequest(CamelInput):
    task_id: int
    technician_id: int


class SendInvoiceRequest(CamelInput):
    invoice_id: int


# --- Endpoints ---

@router.post("/send-task")
async def send_task(data: SendTaskRequest, lifecycle: TaskLifecycle = Depends(get_lifecycle)):
    result = await lifecycle.dispatch_to_technician(data.task_id, data.technician_id)
    if not result.sent_to:
        raise HTTPException(400, "Failed to send task to technician")
    return {"success": True, "message": "Task sent successfully to technician"}


@router.post("/send-client-info")
async def send_client_info(data: SendTaskRequest, lifecycle: TaskLifecycle = Depends(get_lifecycle)):
    result = await lifecycle.send_client_info(data.task_id, [data.technician_id])
    if not result.sent_to:
        raise HTTPException(400, "Failed to send client info to technician")
    return {"success": True, "message": "Client info sent successfully to technician"}


@router.post("/send-invoice")
async def send_invoice(
    data: SendInvoiceRequest,
    storage: Storage = Depends(get_storage),
    gateway: TelegramGateway = Depends(get_gateway),
):
    if not await storage.get_invoice(data.invoice_id):
        raise HTTPException(404, "Invoice not found")
    if not await gateway.send_invoice_to_technician(data.invoice_id):
        raise HTTPException(400, "Failed to send invoice to technician")
    return {"success": True, "message": "Invoice sent successfully to technician"}


@router.post("/send-invoice-pdf")
async def send_invoice_pdf(
    pdf: UploadFile = File(...),
    technician_id: str = Form(..., alias="technicianId"),
    invoice_number: str = Form(..., alias="invoiceNumber"),
    message: str = Form("", alias="message"),
    gateway: TelegramGateway = Depends(get_gateway),
):
    if pdf.content_type not in ("application/pdf", "application/octet-stream"):
        raise HTTPException(400, "Only PDF files are allowed")
    limit = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if pdf.size is not None and pdf.size > limit:
        raise HTTPException(413, f"File exceeds {settings.MAX_UPLOAD_SIZE_MB} MB")
    # at most one byte past the limit is read
    content = await pdf.read(limit + 1)
    if len(content) > limit:
        raise HTTPException(413, f"File exceeds {settings.MAX_UPLOAD_SIZE_MB} MB")
    if not content:
        raise HTTPException(400, "PDF file is required")

    file_name = INVOICE_PDF_NAME.format(invoice_number=invoice_number)
    ok = await gateway.send_invoice_pdf(technician_id, content, file_name, message or None)
    if not ok:
        raise HTTPException(400, "Failed to send invoice PDF")
    return {"success": True, "message": "Invoice PDF sent successfully", "fileName": file_name}


@router.get("/status")
async def bot_status(
    storage: Storage = Depends(get_storage),
    gateway: TelegramGateway = Depends(get_gateway),
):
    bot = await storage.get_bot_settings()
    enabled = bool(bot and bot.is_enabled)
    if enabled and bot.bot_token and not gateway.is_connected:
        try:
            await gateway.initialize(bot.bot_token)
        except GatewayInitError as exc:
            logger.error("Failed to auto-start bot: %s", exc.message)

    connected = gateway.is_connected and (await gateway.test_connection()).get("success", False)
    return {
        "connected": connected,
        "status": "Bot is running" if connected else "Bot is not connected",
        "enabled": enabled,
        "username": gateway.bot_username,
    }
