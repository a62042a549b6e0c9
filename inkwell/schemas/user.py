import uuid
from datetime import datetime

from fastapi_users import schemas
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from inkwell.schemas.common import CamelModel


class UserRead(schemas.BaseUser[uuid.UUID]):
    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )

    name: str
    role: str
    avatar: str | None = None
    created_at: datetime | None = None


class UserCreate(schemas.BaseUserCreate):
    name: str = Field(..., max_length=50)


class UserUpdate(schemas.BaseUserUpdate):
    name: str | None = Field(None, max_length=50)


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None


class RegisterRequest(CamelModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class ProfileUpdateRequest(CamelModel):
    name: str | None = None
    email: str | None = None


class ChangePasswordRequest(CamelModel):
    current_password: str | None = None
    new_password: str | None = None
