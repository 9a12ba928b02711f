"""Shared FastAPI dependencies.

Connection details arrive with every request as query parameters and are
turned into explicit connection values here; no route or client reads
them from anywhere else.
"""

from __future__ import annotations

from functools import lru_cache

import httpx
from fastapi import Depends, Query

from chroma_admin.core.config import Settings, get_settings
from chroma_admin.core.errors import ConnectionConfigError
from chroma_admin.models.entities import DirectConnection, IonosConnection
from chroma_admin.upstream.chroma import ChromaDirectClient
from chroma_admin.upstream.ionos import IonosClient

MISSING_CONNECTION = "Missing connection parameters"


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_upstream_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for upstream HTTP calls; ``None`` means the default network transport."""
    return None


def get_ionos_connection(
    connection_string: str | None = Query(default=None, alias="connectionString"),
    token: str | None = Query(default=None),
) -> IonosConnection:
    if not connection_string or not token:
        raise ConnectionConfigError(MISSING_CONNECTION)
    return IonosConnection(connection_string=connection_string, token=token)


def get_ionos_client(
    connection: IonosConnection = Depends(get_ionos_connection),
    settings: Settings = Depends(get_app_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_upstream_transport),
) -> IonosClient:
    return IonosClient(connection, timeout=settings.upstream_timeout, transport=transport)


def get_direct_connection(
    connection_string: str | None = Query(default=None, alias="connectionString"),
    auth_type: str = Query(default="", alias="authType"),
    token: str = Query(default=""),
    username: str = Query(default=""),
    password: str = Query(default=""),
    tenant: str = Query(default="default_tenant"),
    database: str = Query(default="default_database"),
) -> DirectConnection:
    if not connection_string:
        raise ConnectionConfigError(MISSING_CONNECTION)
    if auth_type not in ("token", "basic"):
        auth_type = ""
    return DirectConnection(
        connection_string=connection_string,
        auth_type=auth_type,  # type: ignore[arg-type]
        token=token,
        username=username,
        password=password,
        tenant=tenant or "default_tenant",
        database=database or "default_database",
    )


def get_direct_client(connection: DirectConnection = Depends(get_direct_connection)) -> ChromaDirectClient:
    return ChromaDirectClient(connection)


__all__ = [
    "MISSING_CONNECTION",
    "get_app_settings",
    "get_direct_client",
    "get_direct_connection",
    "get_ionos_client",
    "get_ionos_connection",
    "get_upstream_transport",
]
