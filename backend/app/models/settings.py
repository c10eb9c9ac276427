from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class BotSettings(TimestampMixin, Base):
    """Singleton row: Telegram bot configuration."""
    __tablename__ = "bot_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    bot_token: Mapped[str] = mapped_column(Text, default="")
    google_maps_api_key: Mapped[str | None] = mapped_column(Text, default=None)
    enable_notifications: Mapped[bool] = mapped_column(default=True)
    is_enabled: Mapped[bool] = mapped_column(default=False)


class SystemSettings(TimestampMixin, Base):
    """Singleton row: UI / bot language and display preferences."""
    __tablename__ = "system_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    language: Mapped[str] = mapped_column(String(10), default="en")
    rtl_enabled: Mapped[bool] = mapped_column(default=False)
    timezone: Mapped[str] = mapped_column(String(100), default="UTC")
    date_format: Mapped[str] = mapped_column(String(50), default="YYYY-MM-DD")
    theme: Mapped[str] = mapped_column(String(20), default="light")
    enable_dashboard: Mapped[bool] = mapped_column(default=True)


class AdminProfile(TimestampMixin, Base):
    __tablename__ = "admin_profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True)
    display_name: Mapped[str | None] = mapped_column(String(100), default=None)
    email: Mapped[str] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(20), default=None)
    phone_login_enabled: Mapped[bool] = mapped_column(default=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), default=None)
    last_login_at: Mapped[datetime | None] = mapped_column(default=None)
