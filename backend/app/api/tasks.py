from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from api.deps import get_lifecycle, get_storage
from core.security import require_admin
from schemas import CamelModel, Task, TaskCreate, TaskStatus, TaskUpdate
from services.task_lifecycle import DispatchResult, TaskLifecycle
from storage import Storage

router = APIRouter(prefix="/api/tasks", tags=["tasks"], dependencies=[Depends(require_admin)])


# --- Schemas ---

class DispatchOut(CamelModel):
    success: bool
    message: str
    task: Task
    sent_to: list[int]
    failed: list[int]
    warning: str | None = None


def _dispatch_response(result: DispatchResult, ok_message: str, fail_message: str, warning: str | None = None):
    body = DispatchOut(
        success=bool(result.sent_to),
        message=ok_message if result.sent_to else fail_message,
        task=result.task,
        sent_to=result.sent_to,
        failed=result.failed,
        warning=warning,
    )
    return JSONResponse(
        status_code=200 if body.success else 400,
        content=body.model_dump(mode="json", by_alias=True),
    )


# --- Endpoints ---

@router.get("", response_model=list[Task])
async def list_tasks(status: TaskStatus | None = None, storage: Storage = Depends(get_storage)):
    if status is not None:
        return await storage.list_tasks_by_status(status)
    return await storage.list_tasks()


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: int, storage: Storage = Depends(get_storage)):
    task = await storage.get_task(task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return task


@router.post("", response_model=Task, status_code=201)
async def create_task(data: TaskCreate, lifecycle: TaskLifecycle = Depends(get_lifecycle)):
    return await lifecycle.create_task(data)


@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    lifecycle: TaskLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.update_task(task_id, data)


@router.delete("/{task_id}", status_code=204)
async def delete_task(task_id: int, lifecycle: TaskLifecycle = Depends(get_lifecycle)):
    if not await lifecycle.delete_task(task_id):
        raise HTTPException(404, "Task not found")


@router.post("/{task_id}/dispatch")
async def dispatch_task(task_id: int, lifecycle: TaskLifecycle = Depends(get_lifecycle)):
    result = await lifecycle.dispatch(task_id)
    return _dispatch_response(
        result,
        "Task sent to assigned technicians",
        "Failed to send task to any technician",
    )


@router.post("/{task_id}/send-client-data")
async def send_client_data(task_id: int, lifecycle: TaskLifecycle = Depends(get_lifecycle)):
    result = await lifecycle.send_client_info(task_id)
    return _dispatch_response(
        result,
        "Confidential client data sent to assigned technicians",
        "Failed to send client data to any technician",
        warning="Confidential data - logged for security",
    )


@router.post("/{task_id}/send-general-data")
async def send_general_data(task_id: int, lifecycle: TaskLifecycle = Depends(get_lifecycle)):
    task = await lifecycle.send_general_data(task_id)
    return {"success": True, "message": "General task data recorded", "taskId": task.task_id}
