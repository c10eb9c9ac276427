from datetime import datetime

from pydantic import Field

from schemas.base import CamelInput, CamelModel


class TechnicianCreate(CamelInput):
    telegram_id: str = Field(min_length=1, max_length=255)
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str | None = None
    username: str | None = None
    phone_number: str | None = None
    service_provided: str | None = None
    city_area: str | None = None
    is_active: bool = True


class TechnicianUpdate(CamelInput):
    nullable_fields = frozenset({"last_name", "username", "phone_number", "service_provided", "city_area"})

    telegram_id: str | None = Field(default=None, min_length=1, max_length=255)
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = None
    username: str | None = None
    phone_number: str | None = None
    service_provided: str | None = None
    city_area: str | None = None
    is_active: bool | None = None


class Technician(CamelModel):
    id: int
    telegram_id: str
    first_name: str
    last_name: str | None = None
    username: str | None = None
    phone_number: str | None = None
    service_provided: str | None = None
    city_area: str | None = None
    is_active: bool = True
    joined_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()
