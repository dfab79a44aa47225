from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ListResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int | None = None
    page: int | None = None
    page_size: int | None = Field(default=None, alias="pageSize")
    stats: dict[str, Any] | None = None

    def resolved_total(self) -> int:
        return self.total if self.total is not None else len(self.items)


class BackupItem(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | int
    name: str = ""
    description: str | None = None
    type: str = "FULL"
    status: str = "PENDING"
    location: str = "LOCAL"
    created_at: str | None = Field(default=None, alias="createdAt")
