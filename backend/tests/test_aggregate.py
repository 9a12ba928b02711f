"""Tests for the collection aggregator."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from chroma_admin.models.dto import Collection
from chroma_admin.models.entities import ErrorResult
from chroma_admin.normalize import collection_descriptors
from chroma_admin.services.aggregate import aggregate_collections, list_ionos_collections


@pytest.mark.asyncio
async def test_failed_lookup_counts_as_zero_and_keeps_siblings() -> None:
    descriptors = collection_descriptors({"items": [{"id": "a"}, {"id": "b"}, {"id": "c"}]})

    async def lookup(collection: Collection) -> int:
        if collection.id == "b":
            raise RuntimeError("upstream exploded")
        return {"a": 4, "c": 9}[collection.id]

    collections = await aggregate_collections(descriptors, lookup)

    assert [(c.id, c.count) for c in collections] == [("a", 4), ("b", 0), ("c", 9)]


@pytest.mark.asyncio
async def test_lookups_run_concurrently_and_keep_input_order() -> None:
    descriptors = collection_descriptors({"names": ["slow", "fast"]})
    started: list[str] = []
    release = asyncio.Event()

    async def lookup(collection: Collection) -> int:
        started.append(collection.id)
        if len(started) == 2:
            release.set()
        # each lookup waits until both have started; a serial join would hang
        await asyncio.wait_for(release.wait(), timeout=1)
        return len(collection.id)

    collections = await aggregate_collections(descriptors, lookup)

    assert sorted(started) == ["fast", "slow"]
    assert [(c.id, c.count) for c in collections] == [("slow", 4), ("fast", 4)]


@pytest.mark.asyncio
async def test_embedded_counts_skip_lookup() -> None:
    descriptors = collection_descriptors({"items": [{"id": "a", "properties": {"documentsCount": 12}}, {"id": "b"}]})
    looked_up: list[str] = []

    async def lookup(collection: Collection) -> int:
        looked_up.append(collection.id)
        return 3

    collections = await aggregate_collections(descriptors, lookup)

    assert looked_up == ["b"]
    assert [(c.id, c.count) for c in collections] == [("a", 12), ("b", 3)]


@pytest.mark.asyncio
async def test_list_ionos_collections_counts_each_collection(upstream, ionos_client) -> None:
    upstream.add(
        "GET",
        "/collections",
        {
            "items": [
                {"id": "c1", "properties": {"name": "First"}},
                {"id": "c2", "properties": {"name": "Second"}},
                {"id": "c3", "properties": {"name": "Third", "documentsCount": 5}},
            ]
        },
    )
    upstream.add("GET", "/collections/c1/documents", {"items": [{"id": "x"}, {"id": "y"}]})
    upstream.add("GET", "/collections/c2/documents", httpx.Response(502, text="bad gateway"))

    collections = await list_ionos_collections(ionos_client, collections_limit=50, count_fetch_limit=1000)

    assert [(c.id, c.name, c.count) for c in collections] == [("c1", "First", 2), ("c2", "Second", 0), ("c3", "Third", 5)]
    listing = upstream.requests[0]
    assert listing.url.params["limit"] == "50"
    assert listing.url.params["offset"] == "0"
    assert "_t" in listing.url.params
    count_requests = [r for r in upstream.requests if r.url.path.endswith("/documents")]
    assert {r.url.params["limit"] for r in count_requests} == {"1000"}


@pytest.mark.asyncio
async def test_list_ionos_collections_relays_upstream_failure(upstream, ionos_client) -> None:
    upstream.add("GET", "/collections", httpx.Response(401, text="unauthorized"))

    result = await list_ionos_collections(ionos_client)

    assert isinstance(result, ErrorResult)
    assert result.status_code == 401
    assert result.error == "IONOS API Error: 401 - unauthorized"
