from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class DeleteRequest(BaseModel):
    ids: list[str] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    deleted: int


class StockAdjustmentRequest(BaseModel):
    delta: int


class StockAdjustmentResponse(BaseModel):
    id: str
    stock: int


class RowsResponse(BaseModel):
    rows: list[dict[str, Any]]
