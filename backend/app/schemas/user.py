from datetime import datetime

from pydantic import Field

from schemas.base import CamelInput, CamelModel


class UserCreate(CamelInput):
    username: str = Field(min_length=1, max_length=255)
    password_hash: str
    role: str = "admin"


class User(CamelModel):
    id: int
    username: str
    password_hash: str = Field(exclude=True)
    role: str = "admin"
    created_at: datetime


class LoginRequest(CamelInput):
    username: str
    password: str


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    username: str
    role: str
