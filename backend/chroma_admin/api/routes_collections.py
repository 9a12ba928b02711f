"""Collection and document routes proxied to the IONOS document store."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from chroma_admin.api.dependencies import get_app_settings, get_ionos_client
from chroma_admin.core.config import Settings
from chroma_admin.core.errors import InvalidPayloadError, UpstreamError
from chroma_admin.models.dto import (
    Collection,
    CountResponse,
    CreateCollectionRequest,
    MutationResponse,
    RecordsPage,
    RecordsQueryRequest,
)
from chroma_admin.models.entities import ErrorResult
from chroma_admin.services.aggregate import count_ionos_collection, list_ionos_collections
from chroma_admin.services.dispatch import fetch_records_page
from chroma_admin.upstream.ionos import IonosClient, UpstreamResponse

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_DOCUMENTS_PAYLOAD = 'Invalid payload format. Expected { type: "collection", items: [...] }'


def _unwrap(result: Any) -> Any:
    if isinstance(result, ErrorResult):
        raise UpstreamError(result.error, result.status_code)
    return result


def _deletion_outcome(response: UpstreamResponse, message: str, transport_prefix: str) -> MutationResponse:
    """Empty or non-JSON bodies from a successful DELETE still mean success."""
    if not response.ok:
        failure = response.to_error(transport_prefix=transport_prefix)
        raise UpstreamError(failure.error, failure.status_code, details=failure.details)
    data = response.data if response.data is not None else {"message": message}
    return MutationResponse(message=message, data=data)


@router.get("", response_model=list[Collection], summary="List collections with document counts")
async def list_collections(
    client: IonosClient = Depends(get_ionos_client),
    settings: Settings = Depends(get_app_settings),
) -> list[Collection]:
    result = await list_ionos_collections(
        client,
        collections_limit=settings.collections_limit,
        count_fetch_limit=settings.count_fetch_limit,
    )
    return _unwrap(result)


@router.post("/create", summary="Create a collection")
async def create_collection(
    request: CreateCollectionRequest,
    client: IonosClient = Depends(get_ionos_client),
) -> Any:
    response = await client.create_collection(request.model_dump())
    if not response.ok:
        _unwrap(response.to_error(transport_prefix="Failed to create collection"))
    logger.info("Created collection %s", request.properties.get("name", ""))
    return response.data


@router.delete("/{collection_id}", response_model=MutationResponse, summary="Delete a collection")
async def delete_collection(
    collection_id: str,
    client: IonosClient = Depends(get_ionos_client),
) -> MutationResponse:
    response = await client.delete_collection(collection_id)
    return _deletion_outcome(response, "Collection deleted successfully", "Failed to delete collection from IONOS")


@router.get("/{collection_id}/count", response_model=CountResponse, summary="Count documents in a collection")
async def count_documents(
    collection_id: str,
    client: IonosClient = Depends(get_ionos_client),
) -> CountResponse:
    return _unwrap(await count_ionos_collection(client, collection_id))


@router.get("/{collection_id}/records", response_model=RecordsPage, summary="List or query records")
async def get_records(
    collection_id: str,
    page: int = Query(default=1, ge=1),
    query: str | None = Query(default=None),
    client: IonosClient = Depends(get_ionos_client),
    settings: Settings = Depends(get_app_settings),
) -> RecordsPage:
    result = await fetch_records_page(client, collection_id, page=page, query=query, top_k=settings.query_top_k)
    return _unwrap(result)


@router.post("/{collection_id}/records", response_model=RecordsPage, summary="Similarity query")
async def query_records(
    collection_id: str,
    request: RecordsQueryRequest,
    client: IonosClient = Depends(get_ionos_client),
    settings: Settings = Depends(get_app_settings),
) -> RecordsPage:
    result = await fetch_records_page(
        client,
        collection_id,
        page=request.page,
        query=request.query,
        top_k=settings.query_top_k,
    )
    return _unwrap(result)


@router.post("/{collection_id}/documents", response_model=MutationResponse, summary="Add documents")
async def add_documents(
    collection_id: str,
    body: Any = Body(default=None),
    client: IonosClient = Depends(get_ionos_client),
) -> MutationResponse:
    if not isinstance(body, dict) or not isinstance(body.get("items"), list):
        raise InvalidPayloadError(INVALID_DOCUMENTS_PAYLOAD)
    response = await client.add_documents(collection_id, body)
    if not response.ok:
        _unwrap(response.to_error(transport_prefix="Failed to add documents to IONOS"))
    added = len(body["items"])
    logger.info("Added %d document(s) to %s", added, collection_id)
    return MutationResponse(message=f"Successfully added {added} document(s)", data=response.data)


@router.delete(
    "/{collection_id}/documents/{document_id}",
    response_model=MutationResponse,
    summary="Delete a document",
)
async def delete_document(
    collection_id: str,
    document_id: str,
    client: IonosClient = Depends(get_ionos_client),
) -> MutationResponse:
    response = await client.delete_document(collection_id, document_id)
    return _deletion_outcome(response, "Document deleted successfully", "Failed to delete document from IONOS")


__all__ = ["router"]
