from datetime import datetime
from pydantic import Field, field_validator

from .common import ApiModel, RowId
from .user import UserSummaryOut


def _required_text(v: str | None, message: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError(message)
    return v


class ProjectCreateIn(ApiModel):
    name: str = Field(max_length=200)
    description: str
    member_ids: list[RowId] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return _required_text(v, "Please add a project name")

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str) -> str:
        return _required_text(v, "Please add a description")


class ProjectUpdateIn(ApiModel):
    name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    member_ids: list[RowId] | None = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str | None) -> str:
        return _required_text(v, "Please add a project name")

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str | None) -> str:
        return _required_text(v, "Please add a description")


class ProjectOut(ApiModel):
    id: int
    name: str
    description: str
    owner: UserSummaryOut | None = None
    members: list[int] = Field(default_factory=list)
    created_at: datetime
