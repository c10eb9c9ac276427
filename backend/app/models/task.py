from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin
from models.types import IdList


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    task_id: Mapped[str] = mapped_column(String(255), unique=True)  # "T-1"
    task_number: Mapped[str] = mapped_column(String(255), unique=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text)
    client_name: Mapped[str] = mapped_column(String(255))
    client_phone: Mapped[str] = mapped_column(String(255))
    location: Mapped[str] = mapped_column(Text)
    map_url: Mapped[str | None] = mapped_column(Text, default=None)
    technician_ids: Mapped[list[int]] = mapped_column(IdList, default=list)
    status: Mapped[str] = mapped_column(String(50), default="pending", index=True)
    payment_status: Mapped[str] = mapped_column(String(50), default="on_demand")
    scheduled_date: Mapped[str] = mapped_column(String(255))
    scheduled_time_from: Mapped[str] = mapped_column(String(255))
    scheduled_time_to: Mapped[str] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<Task {self.task_number} [{self.status}]>"
