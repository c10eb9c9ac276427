from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, CreatedMixin


class Notification(CreatedMixin, Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[str] = mapped_column(String(100))
    message: Mapped[str] = mapped_column(Text)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[str | None] = mapped_column("metadata", Text, default=None)
    is_read: Mapped[bool] = mapped_column(default=False, index=True)

    def __repr__(self) -> str:
        return f"<Notification {self.type} read={self.is_read}>"
