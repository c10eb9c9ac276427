"""Task lifecycle controller.

    pending --dispatch--> sent --accept--> accepted --(client info)--> accepted
                               --reject--> rejected --dispatch--> sent
    sent | accepted | in_progress --complete--> completed

Technician button presses go through ``handle_callback`` and are checked
against the table above. Pressing a button for the state the task is
already in is a no-op. Admin edits through ``update_task`` may set any
status.
"""
import logging
from dataclasses import dataclass, field

from core.errors import (
    DomainValidationError,
    InvalidTransitionError,
    NoTechniciansAssignedError,
    NotFoundError,
)
from schemas import Task, TaskCreate, TaskStatus, TaskUpdate
from services.notification_relay import NotificationRelay
from services.telegram.config import ACTION_ACCEPT, ACTION_COMPLETE, ACTION_REJECT
from storage import Storage

logger = logging.getLogger("fieldops.lifecycle")

# callback action -> (allowed from-states, target state, notification type)
TRANSITIONS = {
    ACTION_ACCEPT: ({TaskStatus.SENT}, TaskStatus.ACCEPTED, "task_accepted"),
    ACTION_REJECT: ({TaskStatus.SENT}, TaskStatus.REJECTED, "task_rejected"),
    ACTION_COMPLETE: (
        {TaskStatus.SENT, TaskStatus.ACCEPTED, TaskStatus.IN_PROGRESS},
        TaskStatus.COMPLETED,
        "task_completed",
    ),
}

DISPATCHABLE = {TaskStatus.PENDING, TaskStatus.SENT, TaskStatus.REJECTED}
CLIENT_INFO_READY = {TaskStatus.ACCEPTED, TaskStatus.IN_PROGRESS}


@dataclass
class TransitionResult:
    task: Task
    changed: bool
    action: str


@dataclass
class DispatchResult:
    task: Task
    results: dict[int, bool] = field(default_factory=dict)

    @property
    def sent_to(self) -> list[int]:
        return [tid for tid, ok in self.results.items() if ok]

    @property
    def failed(self) -> list[int]:
        return [tid for tid, ok in self.results.items() if not ok]


class TaskLifecycle:

    def __init__(self, storage: Storage, relay: NotificationRelay, gateway):
        self.storage = storage
        self.relay = relay
        self.gateway = gateway

    # --- admin operations ---

    async def create_task(self, data: TaskCreate) -> Task:
        await self._check_technicians(data.technician_ids)
        task = await self.storage.create_task(data)
        await self.relay.notify(
            "task_created",
            f"New task created: {task.task_number} - {task.title}",
            {"taskId": task.id},
        )
        logger.info("Task %s created", task.task_number)
        return task

    async def update_task(self, task_id: int, data: TaskUpdate) -> Task:
        changes = data.changes()
        if "technician_ids" in changes:
            await self._check_technicians(changes["technician_ids"])
        task = await self.storage.update_task(task_id, changes)
        if task is None:
            raise NotFoundError("Task", task_id)
        if "status" in changes:
            await self.relay.notify(
                "task_status_changed",
                f"Task {task.task_number} status changed to {task.status.value}",
                {"taskId": task.id, "status": task.status.value},
            )
        return task

    async def delete_task(self, task_id: int) -> bool:
        deleted = await self.storage.delete_task(task_id)
        if deleted:
            logger.info("Task id=%d deleted", task_id)
        return deleted

    async def dispatch(self, task_id: int) -> DispatchResult:
        """Send the task with Accept/Reject buttons to every assigned technician."""
        task = await self._require_task(task_id)
        if not task.technician_ids:
            raise NoTechniciansAssignedError(task.task_number)
        self._check_dispatchable(task)
        return await self._dispatch(task, task.technician_ids)

    async def dispatch_to_technician(self, task_id: int, technician_id: int) -> DispatchResult:
        task = await self._require_task(task_id)
        if await self.storage.get_technician(technician_id) is None:
            raise NotFoundError("Technician", technician_id)
        self._check_dispatchable(task)
        return await self._dispatch(task, [technician_id])

    async def send_client_info(
        self, task_id: int, technician_ids: list[int] | None = None,
    ) -> DispatchResult:
        """Send confidential client details (with a Complete button). Status is unchanged."""
        task = await self._require_task(task_id)
        targets = technician_ids if technician_ids is not None else task.technician_ids
        if not targets:
            raise NoTechniciansAssignedError(task.task_number)
        if task.status not in CLIENT_INFO_READY:
            raise InvalidTransitionError(task.task_number, task.status.value, "send client info for")

        result = DispatchResult(task=task)
        for technician_id in targets:
            result.results[technician_id] = await self.gateway.send_client_info_to_technician(
                task.id, technician_id,
            )
        logger.warning(
            "SECURITY: client data for task %s sent to technicians %s (failed: %s)",
            task.task_number, result.sent_to, result.failed,
        )
        if result.sent_to:
            await self.relay.notify(
                "client_data_sent",
                f"Confidential client data sent for task {task.task_number}",
                {"taskId": task.id, "technicianIds": result.sent_to},
            )
        return result

    async def send_general_data(self, task_id: int) -> Task:
        """Record that the general task data went out (audit only)."""
        task = await self._require_task(task_id)
        logger.info(
            "General data sent for task %s (%s, %s %s-%s)",
            task.task_number, task.title, task.scheduled_date,
            task.scheduled_time_from, task.scheduled_time_to,
        )
        await self.relay.notify(
            "general_data_sent",
            f"General data sent for task {task.task_number}",
            {"taskId": task.id},
        )
        return task

    # --- technician callbacks ---

    async def handle_callback(
        self, action: str, task_id: int | None, actor: str,
    ) -> TransitionResult | None:
        """Apply a button press. Unknown actions return None."""
        if action not in TRANSITIONS:
            return None
        allowed, target, notification_type = TRANSITIONS[action]

        task = await self.storage.get_task(task_id) if task_id is not None else None
        if task is None:
            raise NotFoundError("Task", task_id)

        if task.status == target:
            return TransitionResult(task=task, changed=False, action=action)
        if task.status not in allowed:
            raise InvalidTransitionError(task.task_number, task.status.value, action.split("_")[0])

        updated = await self.storage.update_task(task.id, {"status": target})
        if updated is None:
            raise NotFoundError("Task", task_id)

        verb = target.value
        await self.relay.notify(
            notification_type,
            f"Task {updated.task_number} {verb} by {actor}",
            {"taskId": updated.id},
        )
        await self.relay.log_activity(
            notification_type,
            f"Task {updated.task_number} {verb} by technician {actor}",
            {"taskId": updated.id, "technicianName": actor},
        )
        logger.info("Task %s %s by %s", updated.task_number, verb, actor)
        return TransitionResult(task=updated, changed=True, action=action)

    async def accept(self, task_id: int, actor: str) -> TransitionResult:
        return await self.handle_callback(ACTION_ACCEPT, task_id, actor)

    async def reject(self, task_id: int, actor: str) -> TransitionResult:
        return await self.handle_callback(ACTION_REJECT, task_id, actor)

    async def complete(self, task_id: int, actor: str) -> TransitionResult:
        return await self.handle_callback(ACTION_COMPLETE, task_id, actor)

    # --- helpers ---

    async def _require_task(self, task_id: int) -> Task:
        task = await self.storage.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    async def _check_technicians(self, technician_ids: list[int]) -> None:
        missing = [
            tid for tid in technician_ids
            if await self.storage.get_technician(tid) is None
        ]
        if missing:
            raise DomainValidationError(
                f"Unknown technician ids: {', '.join(map(str, missing))}",
                ["technicianIds"],
            )

    @staticmethod
    def _check_dispatchable(task: Task) -> None:
        if task.status not in DISPATCHABLE:
            raise InvalidTransitionError(task.task_number, task.status.value, "dispatch")

    async def _dispatch(self, task: Task, technician_ids: list[int]) -> DispatchResult:
        result = DispatchResult(task=task)
        for technician_id in technician_ids:
            result.results[technician_id] = await self.gateway.send_task_to_technician(
                task.id, technician_id,
            )
        if result.sent_to and task.status != TaskStatus.SENT:
            updated = await self.storage.update_task(task.id, {"status": TaskStatus.SENT})
            if updated is not None:
                result.task = updated
        logger.info(
            "Task %s dispatched: sent=%s failed=%s",
            task.task_number, result.sent_to, result.failed,
        )
        return result
