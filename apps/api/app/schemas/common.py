from typing import Annotated, Generic, TypeVar

from fastapi import Path
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Largest value a signed 64-bit INTEGER column holds (SQLite, Postgres BIGINT).
MAX_ID = 2**63 - 1

RowId = Annotated[int, Field(ge=1, le=MAX_ID)]
PathId = Annotated[int, Path(ge=1, le=MAX_ID)]


class ApiModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class DataOut(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ListOut(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: list[T]


class EmptyOut(BaseModel):
    success: bool = True
    data: dict = {}


def ok(data) -> dict:
    return {"success": True, "data": data}


def ok_list(items: list) -> dict:
    return {"success": True, "count": len(items), "data": items}
