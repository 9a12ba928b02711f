"""API integration tests."""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from chroma_admin.api.dependencies import get_upstream_transport
from chroma_admin.app import app

from conftest import BASE_URL, TOKEN

CONNECTION = {"connectionString": BASE_URL, "token": TOKEN}


@pytest.fixture
def client(upstream) -> TestClient:
    app.dependency_overrides[get_upstream_transport] = lambda: upstream.transport
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", "/api/collections"),
        ("GET", "/api/collections/c1/records"),
        ("DELETE", "/api/collections/c1/documents/d1"),
        ("GET", "/api/collections/c1/count"),
    ],
)
def test_missing_connection_parameters(client: TestClient, upstream, method: str, path: str) -> None:
    resp = client.request(method, path, params={"connectionString": BASE_URL})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing connection parameters"}
    assert upstream.requests == []


def test_list_collections(client: TestClient, upstream) -> None:
    upstream.add("GET", "/collections", {"items": [{"id": "c1", "properties": {"name": "Docs", "documentsCount": 3}}]})

    resp = client.get("/api/collections", params=CONNECTION)

    assert resp.status_code == 200
    assert resp.json() == [{"id": "c1", "name": "Docs", "count": 3}]
    assert resp.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"


def test_list_collections_relays_status(client: TestClient, upstream) -> None:
    upstream.add("GET", "/collections", httpx.Response(403, text="nope"))

    resp = client.get("/api/collections", params=CONNECTION)

    assert resp.status_code == 403
    assert resp.json() == {"error": "IONOS API Error: 403 - nope"}


def test_records_listing_and_query(client: TestClient, upstream) -> None:
    upstream.add("GET", "/collections/c1/documents", {"items": [{"id": "d1"}]})
    upstream.add(
        "POST",
        "/collections/c1/query",
        {"properties": {"matches": [{"id": "d1", "score": 0.4, "content": "hit"}]}},
    )

    listing = client.get("/api/collections/c1/records", params={**CONNECTION, "page": 2})
    assert listing.status_code == 200
    assert listing.json() == {
        "total": 1,
        "page": 2,
        "records": [
            {
                "id": "d1",
                "document": "Document ID: d1",
                "metadata": {},
                "properties": None,
                "embedding": [],
                "distance": 0.0,
            }
        ],
    }

    query = client.post("/api/collections/c1/records", params=CONNECTION, json={"query": "hit"})
    assert query.status_code == 200
    body = query.json()
    assert body["page"] == 1
    assert body["total"] == 1
    assert body["records"][0]["document"] == "hit"
    assert body["records"][0]["distance"] == 0.4


def test_records_rejects_page_zero(client: TestClient) -> None:
    resp = client.get("/api/collections/c1/records", params={**CONNECTION, "page": 0})
    assert resp.status_code == 400
    assert "page" in resp.json()["error"]


def test_count(client: TestClient, upstream) -> None:
    upstream.add("GET", "/collections/c1/documents", [{"id": "a"}, {"id": "b"}])

    resp = client.get("/api/collections/c1/count", params=CONNECTION)

    assert resp.json() == {"count": 2}


def test_delete_document_with_empty_body(client: TestClient, upstream) -> None:
    upstream.add("DELETE", "/collections/c1/documents/d1", httpx.Response(200, text=""))

    resp = client.delete("/api/collections/c1/documents/d1", params=CONNECTION)

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Document deleted successfully",
        "data": {"message": "Document deleted successfully"},
    }


def test_delete_collection_with_non_json_body(client: TestClient, upstream) -> None:
    upstream.add("DELETE", "/collections/c1", httpx.Response(202, text="accepted"))

    resp = client.delete("/api/collections/c1", params=CONNECTION)

    assert resp.status_code == 200
    assert resp.json()["message"] == "Collection deleted successfully"


def test_delete_failure_includes_parsed_details(client: TestClient, upstream) -> None:
    upstream.add("DELETE", "/collections/c1/documents/d1", httpx.Response(404, json={"message": "not found"}))

    resp = client.delete("/api/collections/c1/documents/d1", params=CONNECTION)

    assert resp.status_code == 404
    payload = resp.json()
    assert payload["error"].startswith("IONOS API Error: 404 - ")
    assert payload["details"] == {"message": "not found"}


def test_add_documents(client: TestClient, upstream) -> None:
    upstream.add("PUT", "/collections/c1/documents", {"items": [{"id": "new"}]})
    body = {"type": "collection", "items": [{"type": "document", "properties": {"content": "aGk="}}]}

    resp = client.post("/api/collections/c1/documents", params=CONNECTION, json=body)

    assert resp.status_code == 200
    assert resp.json()["message"] == "Successfully added 1 document(s)"
    assert json.loads(upstream.requests[0].content) == body


def test_add_documents_rejects_bad_payload(client: TestClient, upstream) -> None:
    resp = client.post("/api/collections/c1/documents", params=CONNECTION, json={"items": "nope"})

    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Invalid payload format")
    assert upstream.requests == []


def test_create_collection(client: TestClient, upstream) -> None:
    upstream.add("POST", "/collections", {"id": "c9", "properties": {"name": "new"}})

    resp = client.post("/api/collections/create", params=CONNECTION, json={"properties": {"name": "new"}})

    assert resp.status_code == 200
    assert resp.json()["id"] == "c9"
    assert json.loads(upstream.requests[0].content) == {"type": "collection", "properties": {"name": "new"}}


def test_metrics_exposed(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "chadm_requests_total" in resp.text


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.mark.parametrize(
    "method,upstream_method,upstream_path,path,body,prefix",
    [
        ("POST", "POST", "/collections", "/api/collections/create", {"properties": {}}, "Failed to create collection"),
        (
            "POST",
            "PUT",
            "/collections/c1/documents",
            "/api/collections/c1/documents",
            {"type": "collection", "items": []},
            "Failed to add documents to IONOS",
        ),
        ("DELETE", "DELETE", "/collections/c1", "/api/collections/c1", None, "Failed to delete collection from IONOS"),
        (
            "DELETE",
            "DELETE",
            "/collections/c1/documents/d1",
            "/api/collections/c1/documents/d1",
            None,
            "Failed to delete document from IONOS",
        ),
    ],
)
def test_write_routes_report_unreachable_upstream(
    client: TestClient, upstream, method, upstream_method, upstream_path, path, body, prefix
) -> None:
    upstream.add(upstream_method, upstream_path, _refuse)

    resp = client.request(method, path, params=CONNECTION, json=body)

    assert resp.status_code == 500
    assert resp.json()["error"] == f"{prefix}: connection refused"
