from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin
from models.types import StringList


class Invoice(TimestampMixin, Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(primary_key=True)
    invoice_number: Mapped[str] = mapped_column(String(255), unique=True)
    task_id: Mapped[str] = mapped_column(String(255))  # external task code
    technician_id: Mapped[int] = mapped_column(index=True)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False))
    status: Mapped[str] = mapped_column(String(50), default="pending")
    payment_methods: Mapped[list[str]] = mapped_column(StringList, default=list)
    issue_date: Mapped[str] = mapped_column(String(255))
    due_date: Mapped[str] = mapped_column(String(255))
    paid_date: Mapped[str | None] = mapped_column(String(255), default=None)
    client_name: Mapped[str] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} [{self.status}]>"
