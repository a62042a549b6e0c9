from __future__ import annotations

from datetime import datetime

from pydantic import Field

from inkwell.schemas.common import CamelModel


class CategoryIn(CamelModel):
    name: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=500)


class CategoryOut(CamelModel):
    id: int
    name: str
    description: str
    created_at: datetime
