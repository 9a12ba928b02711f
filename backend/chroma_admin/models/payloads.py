"""Request bodies for the document-store write endpoints and content decoding."""

from __future__ import annotations

import base64
import binascii
import mimetypes
from pathlib import Path
from typing import Any, Mapping

DEFAULT_CONTENT_TYPE = "text/plain"
DEFAULT_EMBEDDING_MODEL = "BAAI/bge-large-en-v1.5"
DEFAULT_DB_TYPE = "pgvector"

_SUFFIX_CONTENT_TYPES = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".json": "application/json",
    ".html": "text/html",
    ".htm": "text/html",
}


def encode_content(text: str) -> str:
    """Base64 of the UTF-8 bytes, the encoding the store expects for ``content``."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(content: str, content_type: str | None) -> str:
    """Decode text content for display; anything else is returned as stored."""
    if not content_type or not content_type.startswith("text/"):
        return content
    try:
        return base64.b64decode(content, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return content


def guess_content_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _SUFFIX_CONTENT_TYPES:
        return _SUFFIX_CONTENT_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or DEFAULT_CONTENT_TYPE


def document_payload(
    name: str,
    content: str,
    description: str = "",
    content_type: str = DEFAULT_CONTENT_TYPE,
    labels: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    return {
        "type": "collection",
        "items": [
            {
                "type": "document",
                "properties": {
                    "name": name,
                    "description": description,
                    "contentType": content_type,
                    "content": encode_content(content),
                    "labels": dict(labels or {}),
                },
            }
        ],
    }


def collection_payload(
    name: str,
    description: str,
    labels: Mapping[str, str] | None = None,
    chunking: bool = True,
    chunk_size: int = 128,
    chunk_overlap: int = 50,
    embedding_model: str = DEFAULT_EMBEDDING_MODEL,
    db_type: str = DEFAULT_DB_TYPE,
) -> dict[str, Any]:
    return {
        "type": "collection",
        "properties": {
            "name": name,
            "description": description,
            "chunking": {
                "enabled": chunking,
                "strategy": {
                    "name": "fixed_size",
                    "config": {"chunk_overlap": chunk_overlap, "chunk_size": chunk_size},
                },
            },
            "embedding": {"model": embedding_model},
            "engine": {"db_type": db_type},
            "labels": dict(labels or {}),
        },
    }


def parse_labels(pairs: list[str] | None) -> dict[str, str]:
    """``["team=search", "env=dev"]`` -> ``{"team": "search", "env": "dev"}``; blanks skipped."""
    labels: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if sep and key.strip() and value.strip():
            labels[key.strip()] = value.strip()
    return labels


__all__ = [
    "collection_payload",
    "decode_content",
    "document_payload",
    "encode_content",
    "guess_content_type",
    "parse_labels",
]
