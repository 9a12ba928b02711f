"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Collection(BaseModel):
    id: str
    name: str
    count: int = Field(default=0, ge=0)


class Record(BaseModel):
    """One upstream document in normalized form.

    ``properties`` is relayed untouched; ``properties["content"]`` stays in
    whatever encoding upstream used (usually base64) and is only decoded by
    presentation code.
    """

    id: str = Field(min_length=1)
    document: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    properties: dict[str, Any] | None = None
    embedding: list[float] = Field(default_factory=list)
    distance: float = 0.0


class RecordsPage(BaseModel):
    total: int = Field(ge=0)
    page: int = Field(default=1, ge=1)
    records: list[Record]


class ErrorResponse(BaseModel):
    error: str
    details: Any | None = None


class CountResponse(BaseModel):
    count: int = Field(ge=0)


class RecordsQueryRequest(BaseModel):
    query: str | list[float] | None = Field(default=None, description="Free text or an embedding vector")
    page: int = Field(default=1, ge=1)


class CreateCollectionRequest(BaseModel):
    type: Literal["collection"] = "collection"
    properties: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "allow"}


class MutationResponse(BaseModel):
    success: bool = True
    message: str
    data: Any | None = None


__all__ = [
    "Collection",
    "CountResponse",
    "CreateCollectionRequest",
    "ErrorResponse",
    "MutationResponse",
    "Record",
    "RecordsPage",
    "RecordsQueryRequest",
]
