from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, Field

from schemas.base import CamelInput, CamelModel, PaymentStatus, TaskStatus


def _ordered_unique(ids: list[int]) -> list[int]:
    seen: set[int] = set()
    result = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            result.append(i)
    return result


# ordered set of technician ids
TechnicianIds = Annotated[list[int], AfterValidator(_ordered_unique)]


class TaskCreate(CamelInput):
    task_id: str = Field(min_length=1, max_length=255)
    task_number: str = Field(min_length=1, max_length=255)
    title: str = Field(min_length=1, max_length=255)
    description: str
    client_name: str = Field(min_length=1, max_length=255)
    client_phone: str = Field(min_length=1, max_length=255)
    location: str = Field(min_length=1)
    map_url: str | None = None
    technician_ids: TechnicianIds = Field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.ON_DEMAND
    scheduled_date: str = Field(min_length=1)
    scheduled_time_from: str = Field(min_length=1)
    scheduled_time_to: str = Field(min_length=1)


class TaskUpdate(CamelInput):
    nullable_fields = frozenset({"map_url"})

    task_id: str | None = Field(default=None, min_length=1, max_length=255)
    task_number: str | None = Field(default=None, min_length=1, max_length=255)
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    client_name: str | None = None
    client_phone: str | None = None
    location: str | None = None
    map_url: str | None = None
    technician_ids: TechnicianIds | None = None
    status: TaskStatus | None = None
    payment_status: PaymentStatus | None = None
    scheduled_date: str | None = None
    scheduled_time_from: str | None = None
    scheduled_time_to: str | None = None



class Task(CamelModel):
    id: int
    task_id: str
    task_number: str
    title: str
    description: str
    client_name: str
    client_phone: str
    location: str
    map_url: str | None = None
    technician_ids: list[int] = Field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.ON_DEMAND
    scheduled_date: str
    scheduled_time_from: str
    scheduled_time_to: str
    created_at: datetime
    updated_at: datetime
