from datetime import datetime

from pydantic import EmailStr, Field

from schemas.base import CamelInput, CamelModel, Language


class BotSettings(CamelModel):
    id: int
    bot_token: str = ""
    google_maps_api_key: str | None = None
    enable_notifications: bool = True
    is_enabled: bool = False
    updated_at: datetime


class BotSettingsUpdate(CamelInput):
    nullable_fields = frozenset({"google_maps_api_key"})

    bot_token: str | None = None
    google_maps_api_key: str | None = None
    enable_notifications: bool | None = None
    is_enabled: bool | None = None


class SystemSettings(CamelModel):
    id: int
    language: Language = Language.EN
    rtl_enabled: bool = False
    timezone: str = "UTC"
    date_format: str = "YYYY-MM-DD"
    theme: str = "light"
    enable_dashboard: bool = True
    created_at: datetime
    updated_at: datetime


class SystemSettingsUpdate(CamelInput):
    language: Language | None = None
    rtl_enabled: bool | None = None
    timezone: str | None = None
    date_format: str | None = None
    theme: str | None = None
    enable_dashboard: bool | None = None


class AdminProfile(CamelModel):
    id: int
    username: str
    display_name: str | None = None
    email: str
    phone: str | None = None
    phone_login_enabled: bool = False
    password_hash: str | None = Field(default=None, exclude=True)
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AdminProfileUpdate(CamelInput):
    nullable_fields = frozenset({"display_name", "phone"})

    username: str | None = Field(default=None, min_length=3, max_length=50)
    display_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    phone_login_enabled: bool | None = None
    current_password: str | None = None
    new_password: str | None = Field(default=None, min_length=6)
    confirm_password: str | None = None
