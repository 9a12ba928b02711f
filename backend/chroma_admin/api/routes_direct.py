"""Routes backed by a ChromaDB server reached through its client library."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from chroma_admin.api.dependencies import get_app_settings, get_direct_client
from chroma_admin.core.config import Settings
from chroma_admin.core.errors import RecordNotFoundError, UpstreamError
from chroma_admin.models.dto import Collection, CountResponse, RecordsPage, RecordsQueryRequest
from chroma_admin.models.entities import ErrorResult
from chroma_admin.services.aggregate import count_direct_collection, list_direct_collections
from chroma_admin.services.dispatch import fetch_direct_records_page
from chroma_admin.upstream.chroma import ChromaDirectClient

router = APIRouter()


def _unwrap(result: Any) -> Any:
    if isinstance(result, ErrorResult):
        if result.status_code == 404:
            raise RecordNotFoundError(result.error)
        raise UpstreamError(result.error, result.status_code)
    return result


@router.get("", response_model=list[Collection], summary="List ChromaDB collections")
async def list_collections(client: ChromaDirectClient = Depends(get_direct_client)) -> list[Collection]:
    return _unwrap(await list_direct_collections(client))


@router.get("/{collection_name}/count", response_model=CountResponse, summary="Count records")
async def count_records(
    collection_name: str,
    client: ChromaDirectClient = Depends(get_direct_client),
) -> CountResponse:
    return _unwrap(await count_direct_collection(client, collection_name))


@router.get("/{collection_name}/records", response_model=RecordsPage, summary="Page through records")
async def get_records(
    collection_name: str,
    page: int = Query(default=1, ge=1),
    query: str | None = Query(default=None),
    client: ChromaDirectClient = Depends(get_direct_client),
    settings: Settings = Depends(get_app_settings),
) -> RecordsPage:
    result = await fetch_direct_records_page(
        client,
        collection_name,
        page=page,
        query=query,
        page_size=settings.direct_page_size,
        top_k=settings.query_top_k,
    )
    return _unwrap(result)


@router.post("/{collection_name}/records", response_model=RecordsPage, summary="Query by vector or id")
async def query_records(
    collection_name: str,
    request: RecordsQueryRequest,
    client: ChromaDirectClient = Depends(get_direct_client),
    settings: Settings = Depends(get_app_settings),
) -> RecordsPage:
    result = await fetch_direct_records_page(
        client,
        collection_name,
        page=request.page,
        query=request.query,
        page_size=settings.direct_page_size,
        top_k=settings.query_top_k,
    )
    return _unwrap(result)


__all__ = ["router"]
