"""CLI entrypoint for chroma-admin."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

import requests
import typer

from chroma_admin.models.payloads import (
    collection_payload,
    decode_content,
    document_payload,
    guess_content_type,
    parse_labels,
)

app = typer.Typer(name="chradm", help="chroma-admin command-line interface")
collections_app = typer.Typer(name="collections", help="Manage collections")
records_app = typer.Typer(name="records", help="Browse and search records")
documents_app = typer.Typer(name="documents", help="Add and remove documents")
app.add_typer(collections_app, name="collections")
app.add_typer(records_app, name="records")
app.add_typer(documents_app, name="documents")

DEFAULT_HOST = "http://127.0.0.1:8000"

HostOption = typer.Option(None, "--host", help="Override facade host")
ConnectionOption = typer.Option(
    ..., "--connection-string", envvar="CHADM_CONNECTION_STRING", help="Upstream API base URL"
)
TokenOption = typer.Option(..., "--token", envvar="CHADM_TOKEN", help="Bearer token for the upstream API")


def _segment(value: str) -> str:
    return quote(value, safe="")


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("CHADM_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(
    method: str,
    path: str,
    connection_string: str,
    token: str,
    host: Optional[str] = None,
    params: Optional[dict[str, Any]] = None,
    **kwargs: Any,
) -> requests.Response:
    url = f"{_resolve_host(host)}{path}"
    query = {"connectionString": connection_string, "token": token, **(params or {})}
    resp = requests.request(method, url, params=query, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json().get("error", resp.text)
        except (ValueError, AttributeError):
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


@collections_app.command("list")
def list_collections(
    connection_string: str = ConnectionOption,
    token: str = TokenOption,
    host: Optional[str] = HostOption,
) -> None:
    """List collections with their document counts."""
    resp = _request("GET", "/api/collections", connection_string, token, host=host)
    _echo_json(resp.json())


@collections_app.command("create")
def create_collection(
    name: str = typer.Argument(..., help="Collection name"),
    description: str = typer.Option(..., "--description", help="Collection description"),
    label: Optional[list[str]] = typer.Option(None, "--label", help="key=value label, repeatable"),
    chunk_size: int = typer.Option(128, "--chunk-size"),
    chunk_overlap: int = typer.Option(50, "--chunk-overlap"),
    no_chunking: bool = typer.Option(False, "--no-chunking", help="Store documents unchunked"),
    connection_string: str = ConnectionOption,
    token: str = TokenOption,
    host: Optional[str] = HostOption,
) -> None:
    """Create a collection."""
    body = collection_payload(
        name,
        description,
        labels=parse_labels(label),
        chunking=not no_chunking,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
    )
    resp = _request("POST", "/api/collections/create", connection_string, token, host=host, json=body)
    _echo_json(resp.json())


@collections_app.command("delete")
def delete_collection(
    collection_id: str = typer.Argument(..., help="Collection identifier"),
    connection_string: str = ConnectionOption,
    token: str = TokenOption,
    host: Optional[str] = HostOption,
) -> None:
    """Delete a collection and every document in it."""
    resp = _request("DELETE", f"/api/collections/{_segment(collection_id)}", connection_string, token, host=host)
    typer.echo(resp.json()["message"])


@records_app.command("list")
def list_records(
    collection_id: str = typer.Argument(..., help="Collection identifier"),
    page: int = typer.Option(1, "--page", min=1),
    connection_string: str = ConnectionOption,
    token: str = TokenOption,
    host: Optional[str] = HostOption,
) -> None:
    """List the records of a collection."""
    resp = _request(
        "GET",
        f"/api/collections/{_segment(collection_id)}/records",
        connection_string,
        token,
        host=host,
        params={"page": page},
    )
    _echo_json(resp.json())


@records_app.command("query")
def query_records(
    collection_id: str = typer.Argument(..., help="Collection identifier"),
    text: str = typer.Argument(..., help="Query text, or comma-separated floats for a raw embedding"),
    connection_string: str = ConnectionOption,
    token: str = TokenOption,
    host: Optional[str] = HostOption,
) -> None:
    """Run a similarity query against a collection."""
    resp = _request(
        "POST",
        f"/api/collections/{_segment(collection_id)}/records",
        connection_string,
        token,
        host=host,
        json={"query": text},
    )
    _echo_json(resp.json())


@records_app.command("show")
def show_record(
    collection_id: str = typer.Argument(..., help="Collection identifier"),
    record_id: str = typer.Argument(..., help="Record identifier"),
    decode: bool = typer.Option(True, "--decode/--raw", help="Decode base64 text content"),
    connection_string: str = ConnectionOption,
    token: str = TokenOption,
    host: Optional[str] = HostOption,
) -> None:
    """Show one record from a collection listing."""
    resp = _request(
        "GET",
        f"/api/collections/{_segment(collection_id)}/records",
        connection_string,
        token,
        host=host,
    )
    record = next((item for item in resp.json()["records"] if item["id"] == record_id), None)
    if record is None:
        typer.echo(f"Record {record_id} not found in {collection_id}", err=True)
        raise typer.Exit(code=1)
    properties = record.get("properties") or {}
    if decode and properties.get("content"):
        properties["content"] = decode_content(properties["content"], properties.get("contentType"))
    _echo_json(record)


@documents_app.command("add")
def add_document(
    collection_id: str = typer.Argument(..., help="Collection identifier"),
    name: str = typer.Option(..., "--name", help="Document name"),
    content: Optional[str] = typer.Option(None, "--content", help="Inline document text"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read document text from this file"),
    description: str = typer.Option("", "--description"),
    content_type: Optional[str] = typer.Option(None, "--content-type"),
    label: Optional[list[str]] = typer.Option(None, "--label", help="key=value label, repeatable"),
    connection_string: str = ConnectionOption,
    token: str = TokenOption,
    host: Optional[str] = HostOption,
) -> None:
    """Add a single text document to a collection."""
    if (content is None) == (file is None):
        typer.echo("Pass exactly one of --content or --file", err=True)
        raise typer.Exit(code=2)
    if file is not None:
        path = file.expanduser()
        text = path.read_text(encoding="utf-8")
        resolved_type = content_type or guess_content_type(path)
    else:
        text = content or ""
        resolved_type = content_type or "text/plain"
    body = document_payload(name, text, description=description, content_type=resolved_type, labels=parse_labels(label))
    resp = _request(
        "POST",
        f"/api/collections/{_segment(collection_id)}/documents",
        connection_string,
        token,
        host=host,
        json=body,
    )
    typer.echo(resp.json()["message"])


@documents_app.command("delete")
def delete_document(
    collection_id: str = typer.Argument(..., help="Collection identifier"),
    document_id: str = typer.Argument(..., help="Document identifier"),
    connection_string: str = ConnectionOption,
    token: str = TokenOption,
    host: Optional[str] = HostOption,
) -> None:
    """Delete one document."""
    resp = _request(
        "DELETE",
        f"/api/collections/{_segment(collection_id)}/documents/{_segment(document_id)}",
        connection_string,
        token,
        host=host,
    )
    typer.echo(resp.json()["message"])


if __name__ == "__main__":
    app()
