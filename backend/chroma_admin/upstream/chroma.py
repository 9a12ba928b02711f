"""
Direct ChromaDB access through the ``chromadb`` HTTP client.

Used when the admin UI points at a plain ChromaDB server instead of the
IONOS document store. The client library is synchronous, so every call is
pushed to a worker thread; results are converted to plain JSON-like
payloads and go through the same normalizer as the REST responses.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Callable, Sequence
from urllib.parse import urlparse

import chromadb
from chromadb.config import Settings as ChromaSettings

from chroma_admin.core.errors import UpstreamError
from chroma_admin.core.logging import mask_secret
from chroma_admin.core.metrics import UPSTREAM_LATENCY, UPSTREAM_REQUESTS
from chroma_admin.models.entities import DirectConnection

logger = logging.getLogger(__name__)

TOKEN_AUTH_PROVIDER = "chromadb.auth.token_authn.TokenAuthClientProvider"
BASIC_AUTH_PROVIDER = "chromadb.auth.basic_authn.BasicAuthClientProvider"

LIST_INCLUDE = ["documents", "embeddings", "metadatas"]
QUERY_INCLUDE = ["documents", "embeddings", "metadatas", "distances"]


def parse_connection_string(connection_string: str) -> tuple[str, int, bool]:
    """Split ``http(s)://host:port`` into the pieces ``chromadb.HttpClient`` takes."""
    value = connection_string.strip()
    if "://" not in value:
        value = f"http://{value}"
    parsed = urlparse(value)
    ssl = parsed.scheme == "https"
    port = parsed.port or (443 if ssl else 8000)
    return parsed.hostname or "localhost", port, ssl


def client_settings(connection: DirectConnection) -> ChromaSettings:
    if connection.auth_type == "token":
        return ChromaSettings(
            chroma_client_auth_provider=TOKEN_AUTH_PROVIDER,
            chroma_client_auth_credentials=connection.token,
            anonymized_telemetry=False,
        )
    if connection.auth_type == "basic":
        return ChromaSettings(
            chroma_client_auth_provider=BASIC_AUTH_PROVIDER,
            chroma_client_auth_credentials=f"{connection.username}:{connection.password}",
            anonymized_telemetry=False,
        )
    return ChromaSettings(anonymized_telemetry=False)


def build_http_client(connection: DirectConnection) -> Any:
    host, port, ssl = parse_connection_string(connection.connection_string)
    logger.info(
        "Connecting to ChromaDB at %s:%s",
        host,
        port,
        extra={
            "ctx_auth_type": connection.auth_type or "none",
            "ctx_token": mask_secret(connection.token),
            "ctx_tenant": connection.tenant,
            "ctx_database": connection.database,
        },
    )
    return chromadb.HttpClient(
        host=host,
        port=port,
        ssl=ssl,
        settings=client_settings(connection),
        tenant=connection.tenant,
        database=connection.database,
    )


def describe_failure(exc: Exception, connection_string: str) -> UpstreamError:
    """Translate a client-library exception into the message shown to the user."""
    message = str(exc)
    lowered = message.lower()
    if "401" in message or "403" in message or "unauthorized" in lowered or "forbidden" in lowered:
        return UpstreamError("Authentication failed. Please check your credentials.", 401)
    if "json" in lowered:
        return UpstreamError(
            f"Invalid response from server at {connection_string}. The server may not be a valid ChromaDB instance.",
            502,
        )
    if "connect" in lowered or "fetch" in lowered:
        return UpstreamError(
            f"Connection failed to {connection_string}. "
            "Please check your connection string and network connectivity.",
            502,
        )
    return UpstreamError(f"ChromaDB request failed: {message}", 500)


def _plain(value: Any) -> Any:
    """Turn numpy arrays and nested sequences from the client into plain lists."""
    if hasattr(value, "tolist"):
        return value.tolist()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


class ChromaDirectClient:
    """Collection and record access against a ChromaDB server."""

    backend = "chroma"

    def __init__(
        self,
        connection: DirectConnection,
        client_factory: Callable[[DirectConnection], Any] = build_http_client,
    ) -> None:
        self.connection = connection
        self._client_factory = client_factory
        self._client: Any = None
        self._lock = threading.Lock()

    def _get_client(self) -> Any:
        with self._lock:
            if self._client is None:
                self._client = self._client_factory(self.connection)
            return self._client

    async def _call(self, operation: str, fn: Callable[[Any], Any]) -> Any:
        t0 = time.perf_counter()
        try:
            result = await asyncio.to_thread(lambda: fn(self._get_client()))
        except UpstreamError:
            raise
        except Exception as exc:  # noqa: BLE001 - the client raises many unrelated types
            UPSTREAM_REQUESTS.labels(backend=self.backend, operation=operation, outcome="error").inc()
            logger.warning("ChromaDB %s failed: %s", operation, exc)
            raise describe_failure(exc, self.connection.connection_string) from exc
        finally:
            UPSTREAM_LATENCY.labels(backend=self.backend, operation=operation).observe(time.perf_counter() - t0)
        UPSTREAM_REQUESTS.labels(backend=self.backend, operation=operation, outcome="ok").inc()
        return result

    async def list_collections(self) -> dict[str, list[str]]:
        """Collection names in the ``{"names": [...]}`` layout."""

        def run(client: Any) -> list[str]:
            return [item if isinstance(item, str) else item.name for item in client.list_collections()]

        return {"names": await self._call("list_collections", run)}

    async def count(self, name: str) -> int:
        return int(await self._call("count", lambda client: client.get_collection(name=name).count()))

    async def get_page(self, name: str, limit: int, offset: int) -> dict[str, Any]:
        def run(client: Any) -> Any:
            collection = client.get_collection(name=name)
            return collection.get(limit=limit, offset=offset, include=LIST_INCLUDE)

        return _plain(dict(await self._call("get", run)))

    async def get_by_ids(self, name: str, ids: Sequence[str]) -> dict[str, Any]:
        def run(client: Any) -> Any:
            return client.get_collection(name=name).get(ids=list(ids), include=LIST_INCLUDE)

        return _plain(dict(await self._call("get", run)))

    async def query(self, name: str, embedding: Sequence[float], n_results: int) -> dict[str, Any]:
        def run(client: Any) -> Any:
            collection = client.get_collection(name=name)
            return collection.query(
                query_embeddings=[list(embedding)],
                n_results=n_results,
                include=QUERY_INCLUDE,
            )

        return _plain(dict(await self._call("query", run)))


__all__ = [
    "ChromaDirectClient",
    "build_http_client",
    "client_settings",
    "describe_failure",
    "parse_connection_string",
]
