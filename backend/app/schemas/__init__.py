from schemas.base import (
    CamelInput,
    CamelModel,
    InvoiceStatus,
    Language,
    PaymentStatus,
    TaskStatus,
    utcnow,
)
from schemas.technician import Technician, TechnicianCreate, TechnicianUpdate
from schemas.task import Task, TaskCreate, TaskUpdate
from schemas.invoice import Invoice, InvoiceCreate, InvoiceUpdate
from schemas.notification import BulkDeleteRequest, Notification, NotificationCreate
from schemas.settings import (
    AdminProfile,
    AdminProfileUpdate,
    BotSettings,
    BotSettingsUpdate,
    SystemSettings,
    SystemSettingsUpdate,
)
from schemas.user import LoginRequest, LoginResponse, User, UserCreate

__all__ = [
    "CamelInput",
    "CamelModel",
    "InvoiceStatus",
    "Language",
    "PaymentStatus",
    "TaskStatus",
    "utcnow",
    "Technician",
    "TechnicianCreate",
    "TechnicianUpdate",
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "Invoice",
    "InvoiceCreate",
    "InvoiceUpdate",
    "BulkDeleteRequest",
    "Notification",
    "NotificationCreate",
    "AdminProfile",
    "AdminProfileUpdate",
    "BotSettings",
    "BotSettingsUpdate",
    "SystemSettings",
    "SystemSettingsUpdate",
    "LoginRequest",
    "LoginResponse",
    "User",
    "UserCreate",
]
