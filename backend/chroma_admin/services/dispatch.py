"""Records fetch dispatch: listing versus similarity query."""

from __future__ import annotations

import logging
from typing import Sequence

from chroma_admin.core.errors import ChromaAdminError
from chroma_admin.models.dto import RecordsPage
from chroma_admin.models.entities import ErrorResult
from chroma_admin.normalize import (
    is_empty_query,
    normalize_records_from_list,
    normalize_records_from_query,
    parse_query,
)
from chroma_admin.upstream.chroma import ChromaDirectClient
from chroma_admin.upstream.ionos import IonosClient

logger = logging.getLogger(__name__)

QueryInput = str | Sequence[float] | None


async def fetch_records_page(
    client: IonosClient,
    collection_id: str,
    page: int = 1,
    query: QueryInput = None,
    top_k: int = 10,
) -> RecordsPage | ErrorResult:
    """Fetch one page of records, or the top-k matches when a query is given.

    Listing mode requests the whole document list: the endpoint takes no
    paging parameters, so ``page`` is only echoed back and ``total`` is the
    number of documents returned. Query results are never paginated.
    """
    if is_empty_query(query):
        response = await client.list_documents(collection_id)
        if not response.ok:
            return response.to_error("IONOS API Error", "Failed to fetch records from IONOS")
        records = normalize_records_from_list(response.data)
        logger.debug("Listed %d records from %s", len(records), collection_id)
        return RecordsPage(total=len(records), page=page, records=records)

    response = await client.query(collection_id, query, n_results=top_k)
    if not response.ok:
        return response.to_error("IONOS Query API Error", "Failed to query IONOS")
    records = normalize_records_from_query(response.data)
    logger.debug("Query against %s matched %d records", collection_id, len(records))
    return RecordsPage(total=len(records), page=1, records=records)


async def fetch_direct_records_page(
    client: ChromaDirectClient,
    collection_name: str,
    page: int = 1,
    query: QueryInput = None,
    page_size: int = 20,
    top_k: int = 10,
) -> RecordsPage | ErrorResult:
    """Direct ChromaDB equivalent of :func:`fetch_records_page`.

    The client library supports offsets, so listings are truly paginated and
    ``total`` is the collection's full count. A numeric query runs a
    similarity search; any other text is looked up as a record id.
    """
    try:
        if is_empty_query(query):
            payload = await client.get_page(collection_name, limit=page_size, offset=(page - 1) * page_size)
            total = await client.count(collection_name)
            records = normalize_records_from_list(payload)
            return RecordsPage(total=max(total, len(records)), page=page, records=records)

        interpreted = parse_query(query)
        if isinstance(interpreted, list):
            payload = await client.query(collection_name, interpreted, n_results=top_k)
            records = normalize_records_from_query(payload)
        else:
            payload = await client.get_by_ids(collection_name, [interpreted])
            records = normalize_records_from_list(payload)
            if not records:
                return ErrorResult(error="RecordNotFound", status_code=404)
        return RecordsPage(total=len(records), page=1, records=records)
    except ChromaAdminError as exc:
        return ErrorResult(error=exc.message, status_code=exc.status_code, details=exc.details)


__all__ = ["fetch_direct_records_page", "fetch_records_page"]
