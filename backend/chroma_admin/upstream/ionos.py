"""
Async client for the IONOS document-store REST API.

Every call authenticates with the bearer token of the connection it was
built with; nothing is cached between instances. Calls never raise for
HTTP or transport problems: they return an :class:`UpstreamResponse` with
``ok=False`` so callers decide how a failure surfaces. A transport failure
(refused connection, DNS, timeout) is reported with ``status_code=0``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Sequence
from urllib.parse import quote

import httpx
import orjson

from chroma_admin.core.metrics import UPSTREAM_LATENCY, UPSTREAM_REQUESTS
from chroma_admin.models.entities import ErrorResult, IonosConnection
from chroma_admin.utils.http import NO_CACHE_HEADERS, cache_buster

logger = logging.getLogger(__name__)

QUERY_INCLUDE = ("documents", "metadatas", "embeddings", "distances")


@dataclass(slots=True)
class UpstreamResponse:
    ok: bool
    status_code: int = 0
    data: Any = None
    text: str = ""
    error: str = ""

    @property
    def transport_failed(self) -> bool:
        return not self.ok and self.status_code == 0

    def to_error(self, prefix: str = "IONOS API Error", transport_prefix: str = "Failed to reach IONOS") -> ErrorResult:
        """Render a failed response the way the facade reports it."""
        if self.transport_failed:
            return ErrorResult(error=f"{transport_prefix}: {self.error}", status_code=500)
        return ErrorResult(
            error=f"{prefix}: {self.status_code} - {self.text}",
            status_code=self.status_code,
            details=self.data,
        )


def _decode(text: str) -> Any:
    if not text.strip():
        return None
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError:
        return None


def _segment(value: str) -> str:
    return quote(value, safe="")


class IonosClient:
    """Thin wrapper around the document-store endpoints the admin UI needs."""

    backend = "ionos"

    def __init__(
        self,
        connection: IonosConnection,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.connection = connection
        self.timeout = timeout
        self._transport = transport

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        no_cache: bool = False,
    ) -> UpstreamResponse:
        url = f"{self.connection.base_url}{path}"
        headers = {**self.connection.auth_headers(), "Content-Type": "application/json"}
        if no_cache:
            headers.update(NO_CACHE_HEADERS)
            params = {**(params or {}), **cache_buster()}

        t0 = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(method, url, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            UPSTREAM_REQUESTS.labels(backend=self.backend, operation=operation, outcome="transport_error").inc()
            logger.warning("IONOS %s %s failed: %s", method, path, exc)
            return UpstreamResponse(ok=False, error=str(exc) or exc.__class__.__name__)
        finally:
            UPSTREAM_LATENCY.labels(backend=self.backend, operation=operation).observe(time.perf_counter() - t0)

        text = resp.text
        ok = resp.is_success
        UPSTREAM_REQUESTS.labels(
            backend=self.backend,
            operation=operation,
            outcome="ok" if ok else str(resp.status_code),
        ).inc()
        if not ok:
            logger.warning("IONOS %s %s returned %s: %s", method, path, resp.status_code, text[:200])
        return UpstreamResponse(
            ok=ok,
            status_code=resp.status_code,
            data=_decode(text),
            text=text,
            error="" if ok else text,
        )

    async def list_collections(self, limit: int = 100) -> UpstreamResponse:
        return await self._request(
            "list_collections",
            "GET",
            "/collections",
            params={"limit": limit, "offset": 0},
            no_cache=True,
        )

    async def create_collection(self, body: dict[str, Any]) -> UpstreamResponse:
        return await self._request("create_collection", "POST", "/collections", json=body)

    async def delete_collection(self, collection_id: str) -> UpstreamResponse:
        return await self._request("delete_collection", "DELETE", f"/collections/{_segment(collection_id)}")

    async def list_documents(
        self,
        collection_id: str,
        limit: int | None = None,
        offset: int | None = None,
        no_cache: bool = False,
    ) -> UpstreamResponse:
        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        return await self._request(
            "list_documents",
            "GET",
            f"/collections/{_segment(collection_id)}/documents",
            params=params or None,
            no_cache=no_cache,
        )

    async def add_documents(self, collection_id: str, body: dict[str, Any]) -> UpstreamResponse:
        return await self._request(
            "add_documents",
            "PUT",
            f"/collections/{_segment(collection_id)}/documents",
            json=body,
        )

    async def delete_document(self, collection_id: str, document_id: str) -> UpstreamResponse:
        return await self._request(
            "delete_document",
            "DELETE",
            f"/collections/{_segment(collection_id)}/documents/{_segment(document_id)}",
        )

    async def query(
        self,
        collection_id: str,
        query: str | Sequence[float],
        n_results: int = 10,
    ) -> UpstreamResponse:
        payload = {
            "query": query if isinstance(query, str) else list(query),
            "n_results": n_results,
            "include": list(QUERY_INCLUDE),
        }
        return await self._request(
            "query",
            "POST",
            f"/collections/{_segment(collection_id)}/query",
            json=payload,
        )


__all__ = ["IonosClient", "QUERY_INCLUDE", "UpstreamResponse"]
