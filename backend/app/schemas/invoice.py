from datetime import datetime

from pydantic import Field

from schemas.base import CamelInput, CamelModel, InvoiceStatus


class InvoiceCreate(CamelInput):
    invoice_number: str = Field(min_length=1, max_length=255)
    task_id: str = Field(min_length=1, max_length=255)  # external task code
    technician_id: int
    amount: float = Field(gt=0)
    status: InvoiceStatus = InvoiceStatus.PENDING
    payment_methods: list[str] = Field(min_length=1)
    issue_date: str
    due_date: str
    paid_date: str | None = None
    client_name: str = Field(min_length=1, max_length=255)


class InvoiceUpdate(CamelInput):
    nullable_fields = frozenset({"paid_date"})

    invoice_number: str | None = Field(default=None, min_length=1, max_length=255)
    task_id: str | None = None
    technician_id: int | None = None
    amount: float | None = Field(default=None, gt=0)
    status: InvoiceStatus | None = None
    payment_methods: list[str] | None = Field(default=None, min_length=1)
    issue_date: str | None = None
    due_date: str | None = None
    paid_date: str | None = None
    client_name: str | None = None


class Invoice(CamelModel):
    id: int
    invoice_number: str
    task_id: str
    technician_id: int
    amount: float
    status: InvoiceStatus = InvoiceStatus.PENDING
    payment_methods: list[str] = Field(default_factory=list)
    issue_date: str
    due_date: str
    paid_date: str | None = None
    client_name: str
    created_at: datetime
    updated_at: datetime
