from typing import Literal

from pydantic import EmailStr, Field, field_validator

from .common import ApiModel


class UserSummaryOut(ApiModel):
    id: int
    name: str
    email: str


class UserOut(UserSummaryOut):
    role: str


class UserUpdateIn(ApiModel):
    name: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    role: Literal["admin", "employee"] | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v
