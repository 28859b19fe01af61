from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from .common import ApiModel, RowId
from .user import UserSummaryOut

TicketStatus = Literal["Open", "In Progress", "Closed"]
TicketPriority = Literal["Low", "Medium", "High"]


def _blank_to_none(v):
    # The UI sends "" for "Unassigned".
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _required_text(v: str | None, message: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError(message)
    return v


class TicketCreateIn(ApiModel):
    title: str = Field(max_length=200)
    description: str
    status: TicketStatus = "Open"
    priority: TicketPriority = "Medium"
    assigned_to: RowId | None = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        return _required_text(v, "Please add a title")

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str) -> str:
        return _required_text(v, "Please add a description")

    @field_validator("assigned_to", mode="before")
    @classmethod
    def normalize_assignee(cls, v):
        return _blank_to_none(v)


class TicketUpdateIn(ApiModel):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: RowId | None = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str | None) -> str:
        return _required_text(v, "Please add a title")

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str | None) -> str:
        return _required_text(v, "Please add a description")

    @field_validator("status", "priority")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Value cannot be null")
        return v

    @field_validator("assigned_to", mode="before")
    @classmethod
    def normalize_assignee(cls, v):
        return _blank_to_none(v)


class ProjectRefOut(ApiModel):
    id: int
    name: str
    description: str | None = None


class TicketOut(ApiModel):
    id: int
    title: str
    description: str
    status: str
    priority: str
    project_id: int
    project: ProjectRefOut | None = None
    submitter: UserSummaryOut | None = None
    assigned_to: UserSummaryOut | None = None
    created_at: datetime
    updated_at: datetime | None = None
