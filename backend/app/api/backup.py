from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from api.deps import get_storage
from config import settings
from core.security import require_admin
from services.backup import resolve_backup, write_backup
from storage import Storage

router = APIRouter(prefix="/api/backup", tags=["backup"], dependencies=[Depends(require_admin)])


@router.post("/create")
async def create_backup(storage: Storage = Depends(get_storage)):
    path = await write_backup(storage, settings.BACKUP_DIR)
    return {
        "success": True,
        "message": "Backup created successfully",
        "filename": path.name,
        "size": path.stat().st_size,
    }


@router.get("/download/{filename}")
async def download_backup(filename: str):
    path = resolve_backup(settings.BACKUP_DIR, filename)
    if path is None:
        raise HTTPException(404, "Backup not found")
    return FileResponse(path, media_type="application/json", filename=filename)
