"""Test fixtures for chroma-admin."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

BASE_URL = "https://ionos.test/api/v1"
TOKEN = "secret-token"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def reset_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset cached settings and environment between tests."""
    monkeypatch.delenv("CHADM_CONFIG", raising=False)
    for key in ("CHADM_UPSTREAM_TIMEOUT", "CHADM_QUERY_TOP_K", "CHADM_COLLECTIONS_LIMIT"):
        monkeypatch.delenv(key, raising=False)

    from chroma_admin.api import dependencies as deps
    from chroma_admin.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    yield
    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()


class FakeUpstream:
    """Routes ``(method, path)`` to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, handler: Handler | httpx.Response | Any) -> None:
        if isinstance(handler, httpx.Response):
            response = handler
            self.routes[(method, path)] = lambda request: response
        elif callable(handler):
            self.routes[(method, path)] = handler
        else:
            payload = handler
            self.routes[(method, path)] = lambda request: httpx.Response(200, json=payload)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v1")
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, text=f"no route for {request.method} {path}")
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def connection():
    from chroma_admin.models.entities import IonosConnection

    return IonosConnection(connection_string=BASE_URL, token=TOKEN)


@pytest.fixture
def ionos_client(upstream: FakeUpstream, connection):
    from chroma_admin.upstream.ionos import IonosClient

    return IonosClient(connection, timeout=5.0, transport=upstream.transport)
