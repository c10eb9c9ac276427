from models.base import Base, create_engine, create_session_factory
from models.types import IdList, StringList
from models.user import User
from models.technician import Technician
from models.task import Task
from models.invoice import Invoice
from models.notification import Notification
from models.settings import AdminProfile, BotSettings, SystemSettings

__all__ = [
    "Base",
    "create_engine",
    "create_session_factory",
    "IdList",
    "StringList",
    "User",
    "Technician",
    "Task",
    "Invoice",
    "Notification",
    "AdminProfile",
    "BotSettings",
    "SystemSettings",
]
