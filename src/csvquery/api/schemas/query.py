"""Envelope DTOs: the shape of one element of the streamed JSON array."""
from __future__ import annotations
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class QueryResultRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    in_: list[str] = Field(alias="in")
    headers: list[str]
    out: list[list[Any]]
