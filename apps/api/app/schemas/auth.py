from typing import Literal

from pydantic import EmailStr, Field, field_validator

from .common import ApiModel
from .user import UserOut


class RegisterIn(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    role: Literal["admin", "employee"] = "employee"

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please add a name")
        return v

    @field_validator("password")
    @classmethod
    def password_bytes_le_72(cls, v: str) -> str:
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password must be <= 72 bytes (bcrypt limit).")
        return v


class LoginIn(ApiModel):
    email: str | None = None
    password: str | None = None


class TokenOut(ApiModel):
    token: str
    user: UserOut
