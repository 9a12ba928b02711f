"""Collection listing with best-effort document counts."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from chroma_admin.core.errors import ChromaAdminError, UpstreamError
from chroma_admin.core.metrics import COUNT_LOOKUP_FAILURES
from chroma_admin.models.dto import Collection, CountResponse
from chroma_admin.models.entities import CollectionDescriptor, ErrorResult
from chroma_admin.normalize import collection_descriptors, count_documents
from chroma_admin.upstream.chroma import ChromaDirectClient
from chroma_admin.upstream.ionos import IonosClient

logger = logging.getLogger(__name__)

CountLookup = Callable[[Collection], Awaitable[int]]


async def aggregate_collections(
    descriptors: Sequence[CollectionDescriptor],
    count_lookup: CountLookup,
    backend: str = "ionos",
) -> list[Collection]:
    """Fill in missing counts concurrently, keeping the input order.

    Lookups are joined with ``return_exceptions=True`` so one failing
    collection does not cancel its siblings; a failed lookup counts as 0.
    """
    pending = [
        index
        for index, descriptor in enumerate(descriptors)
        if not descriptor.count_known and descriptor.has_upstream_id
    ]
    outcomes = await asyncio.gather(
        *(count_lookup(descriptors[index].collection) for index in pending),
        return_exceptions=True,
    )

    counts: dict[int, int] = {}
    for index, outcome in zip(pending, outcomes):
        collection = descriptors[index].collection
        if isinstance(outcome, BaseException):
            COUNT_LOOKUP_FAILURES.labels(backend=backend).inc()
            logger.warning(
                "Count lookup for collection %s failed: %s",
                collection.name,
                outcome,
                extra={"ctx_collection_id": collection.id},
            )
            counts[index] = 0
        else:
            counts[index] = max(int(outcome), 0)

    return [
        descriptor.collection.model_copy(update={"count": counts[index]}) if index in counts else descriptor.collection
        for index, descriptor in enumerate(descriptors)
    ]


def ionos_count_lookup(client: IonosClient, limit: int = 1000) -> CountLookup:
    """Approximate a collection's size by listing up to ``limit`` documents."""

    async def lookup(collection: Collection) -> int:
        response = await client.list_documents(collection.id, limit=limit, offset=0, no_cache=True)
        if not response.ok:
            failure = response.to_error()
            raise UpstreamError(failure.error, failure.status_code)
        return count_documents(response.data)

    return lookup


async def list_ionos_collections(
    client: IonosClient,
    collections_limit: int = 100,
    count_fetch_limit: int = 1000,
) -> list[Collection] | ErrorResult:
    response = await client.list_collections(limit=collections_limit)
    if not response.ok:
        return response.to_error("IONOS API Error", "Failed to connect to IONOS ChromaDB")
    descriptors = collection_descriptors(response.data)
    return await aggregate_collections(descriptors, ionos_count_lookup(client, count_fetch_limit))


async def count_ionos_collection(client: IonosClient, collection_id: str) -> CountResponse | ErrorResult:
    response = await client.list_documents(collection_id)
    if not response.ok:
        return response.to_error("IONOS API Error", "Failed to get collection count from IONOS")
    return CountResponse(count=count_documents(response.data))


async def list_direct_collections(client: ChromaDirectClient) -> list[Collection] | ErrorResult:
    try:
        payload = await client.list_collections()
    except ChromaAdminError as exc:
        return ErrorResult(error=exc.message, status_code=exc.status_code)

    async def lookup(collection: Collection) -> int:
        return await client.count(collection.name)

    return await aggregate_collections(collection_descriptors(payload), lookup, backend=client.backend)


async def count_direct_collection(client: ChromaDirectClient, collection_name: str) -> CountResponse | ErrorResult:
    try:
        return CountResponse(count=await client.count(collection_name))
    except ChromaAdminError as exc:
        return ErrorResult(error=exc.message, status_code=exc.status_code)


__all__ = [
    "CountLookup",
    "aggregate_collections",
    "count_direct_collection",
    "count_ionos_collection",
    "ionos_count_lookup",
    "list_direct_collections",
    "list_ionos_collections",
]
