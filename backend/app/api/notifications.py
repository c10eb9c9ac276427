from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_storage
from core.security import require_admin
from schemas import BulkDeleteRequest, Notification
from storage import Storage

router = APIRouter(prefix="/api/notifications", tags=["notifications"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[Notification])
async def list_notifications(storage: Storage = Depends(get_storage)):
    return await storage.list_notifications()


@router.get("/unread", response_model=list[Notification])
async def list_unread(storage: Storage = Depends(get_storage)):
    return await storage.list_unread_notifications()


@router.patch("/{notification_id}/read", response_model=Notification)
async def mark_read(notification_id: int, storage: Storage = Depends(get_storage)):
    notification = await storage.mark_notification_read(notification_id)
    if not notification:
        raise HTTPException(404, "Notification not found")
    return notification


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(notification_id: int, storage: Storage = Depends(get_storage)):
    if not await storage.delete_notification(notification_id):
        raise HTTPException(404, "Notification not found")


@router.post("/bulk-delete")
async def bulk_delete(data: BulkDeleteRequest, storage: Storage = Depends(get_storage)):
    deleted = 0
    for notification_id in data.ids:
        if await storage.delete_notification(notification_id):
            deleted += 1
    return {"message": f"{deleted} notifications deleted", "deletedCount": deleted}


@router.post("/mark-all-read")
async def mark_all_read(storage: Storage = Depends(get_storage)):
    marked = await storage.mark_all_notifications_read()
    return {"message": "All notifications marked as read", "markedCount": marked}
