from datetime import datetime

from pydantic import Field

from schemas.base import CamelInput, CamelModel


class NotificationCreate(CamelInput):
    type: str = Field(min_length=1, max_length=100)
    message: str
    metadata: str | None = None  # opaque JSON text
    is_read: bool = False


class Notification(CamelModel):
    id: int
    type: str
    message: str
    metadata: str | None = None
    is_read: bool = False
    created_at: datetime


class BulkDeleteRequest(CamelInput):
    ids: list[int] = Field(min_length=1)
