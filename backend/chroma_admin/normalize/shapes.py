"""Normalization of upstream collection and document payloads.

The document store behind the facade answers the same logical request with
several JSON layouts depending on API version and endpoint. Each public
function below walks an ordered table of :class:`ShapeRule` entries; the
first rule whose matcher accepts the payload produces the result. A payload
no rule accepts yields an empty list and a warning in the log, never an
exception, so the UI stays usable.

All functions are pure: same payload in, same models out. Entries that come
without an id get a deterministic placeholder from
:func:`chroma_admin.utils.ids.placeholder_id`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from chroma_admin.core.metrics import SHAPE_MISMATCHES
from chroma_admin.models.dto import Collection, Record
from chroma_admin.models.entities import CollectionDescriptor
from chroma_admin.utils.ids import is_placeholder_id, placeholder_id

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ShapeRule:
    name: str
    matches: Callable[[Any], bool]
    extract: Callable[[Any], list[Any]]


def _apply_rules(rules: Sequence[ShapeRule], payload: Any, kind: str) -> list[Any]:
    for rule in rules:
        if rule.matches(payload):
            logger.debug("Matched %s payload as %r", kind, rule.name)
            return rule.extract(payload)
    SHAPE_MISMATCHES.labels(kind=kind).inc()
    logger.warning(
        "Unrecognised %s payload shape; returning no results",
        kind,
        extra={"ctx_payload_type": type(payload).__name__, "ctx_keys": _keys_of(payload)},
    )
    return []


def _keys_of(payload: Any) -> list[str]:
    if isinstance(payload, Mapping):
        return sorted(str(key) for key in payload)[:20]
    return []


# ---------------------------------------------------------------------------
# field helpers
# ---------------------------------------------------------------------------


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _dig(value: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _list_at(payload: Any, *path: str) -> list[Any] | None:
    value = _dig(payload, *path)
    return value if isinstance(value, list) else None


def _has_list(*path: str) -> Callable[[Any], bool]:
    return lambda payload: _list_at(payload, *path) is not None


def _text(*candidates: Any) -> str | None:
    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number(*candidates: Any) -> float:
    for candidate in candidates:
        if _is_number(candidate):
            return float(candidate)
    return 0.0


def _embedding(*candidates: Any) -> list[float]:
    for candidate in candidates:
        if isinstance(candidate, list) and candidate and all(_is_number(item) for item in candidate):
            return [float(item) for item in candidate]
    return []


def _metadata(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _properties(value: Any) -> dict[str, Any] | None:
    return dict(value) if isinstance(value, Mapping) else None


def _id_value(*candidates: Any) -> str | None:
    """First non-empty string or number among ``candidates``, as a string."""
    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            return candidate
        if _is_number(candidate):
            return str(candidate)
    return None


def _identifier(entry: Mapping[str, Any], keys: Sequence[str], prefix: str, index: int) -> str:
    return _id_value(*(entry.get(key) for key in keys)) or placeholder_id(prefix, index, entry)


def _at(column: Sequence[Any], index: int) -> Any:
    return column[index] if index < len(column) else None


def _nested_column(payload: Mapping[str, Any], key: str) -> list[Any]:
    value = payload.get(key)
    if isinstance(value, list) and value and isinstance(value[0], list):
        return value[0]
    return []


def _flat_column(payload: Mapping[str, Any], key: str) -> list[Any]:
    value = payload.get(key)
    return value if isinstance(value, list) else []


def _placeholder_document(record_id: str) -> str:
    return f"Document ID: {record_id}"


# ---------------------------------------------------------------------------
# collections
# ---------------------------------------------------------------------------


def _embedded_count(entry: Mapping[str, Any]) -> int | None:
    value = _dig(entry, "properties", "documentsCount")
    if _is_number(value) and value > 0:
        return int(value)
    return None


def _describe_named(name: str) -> CollectionDescriptor:
    return CollectionDescriptor(collection=Collection(id=name, name=name, count=0), count_known=False)


def _describe_collection(raw: Any, index: int) -> CollectionDescriptor:
    if isinstance(raw, str) and raw:
        return _describe_named(raw)
    entry = _mapping(raw)
    upstream_id = _id_value(entry.get("id"), entry.get("name"))
    collection_id = upstream_id or placeholder_id("collection", index, entry)
    name = _text(
        _dig(entry, "properties", "name"),
        _dig(entry, "metadata", "name"),
        entry.get("name"),
    ) or collection_id
    count = _embedded_count(entry)
    return CollectionDescriptor(
        collection=Collection(id=collection_id, name=name, count=count or 0),
        count_known=count is not None or upstream_id is None,
        has_upstream_id=upstream_id is not None,
    )


def _describe_all(entries: list[Any]) -> list[CollectionDescriptor]:
    return [_describe_collection(entry, index) for index, entry in enumerate(entries)]


COLLECTION_RULES: tuple[ShapeRule, ...] = (
    ShapeRule("array", lambda payload: isinstance(payload, list), _describe_all),
    ShapeRule("items", _has_list("items"), lambda payload: _describe_all(payload["items"])),
    ShapeRule("collections", _has_list("collections"), lambda payload: _describe_all(payload["collections"])),
    ShapeRule("data", _has_list("data"), lambda payload: _describe_all(payload["data"])),
    ShapeRule(
        "names",
        _has_list("names"),
        lambda payload: [_describe_named(name) for name in payload["names"] if isinstance(name, str) and name],
    ),
)


def collection_descriptors(payload: Any) -> list[CollectionDescriptor]:
    """Collections plus whether each one's document count is already known."""
    return _apply_rules(COLLECTION_RULES, payload, "collections")


def normalize_collections(payload: Any) -> list[Collection]:
    return [descriptor.collection for descriptor in collection_descriptors(payload)]


# ---------------------------------------------------------------------------
# document listings
# ---------------------------------------------------------------------------


def _record_from_item(raw: Any, index: int) -> Record:
    # list endpoints never return vectors for this shape
    entry = _mapping(raw)
    record_id = _identifier(entry, ("id",), "doc", index)
    return Record(
        id=record_id,
        document=_text(_dig(entry, "properties", "content")) or _placeholder_document(record_id),
        metadata=_metadata(entry.get("metadata")),
        properties=_properties(entry.get("properties")),
    )


def _record_from_document(raw: Any, index: int) -> Record:
    entry = _mapping(raw)
    record_id = _identifier(entry, ("id", "documentId"), "doc", index)
    document = _text(
        _dig(entry, "properties", "content"),
        entry.get("content"),
        entry.get("text"),
        entry.get("document"),
    )
    return Record(
        id=record_id,
        document=document or _placeholder_document(record_id),
        metadata=_metadata(entry.get("metadata")),
        properties=_properties(entry.get("properties")),
        embedding=_embedding(entry.get("embedding"), entry.get("vector")),
    )


def _is_flat_parallel(payload: Any) -> bool:
    """Flat ``ids`` column alongside a ``documents`` column of plain text.

    A ``documents`` list holding mappings is the document-store layout and
    belongs to the ``documents`` rule, whatever ``ids`` contains.
    """
    ids = _list_at(payload, "ids")
    if ids is None or (ids and isinstance(ids[0], list)):
        return False
    documents = _dig(payload, "documents")
    if documents is None:
        return True
    return isinstance(documents, list) and all(item is None or isinstance(item, str) for item in documents)


def _records_from_flat_parallel(payload: Mapping[str, Any]) -> list[Record]:
    """ChromaDB ``collection.get`` layout: index-aligned flat columns."""
    documents = _flat_column(payload, "documents")
    metadatas = _flat_column(payload, "metadatas")
    embeddings = _flat_column(payload, "embeddings")
    records: list[Record] = []
    for index, raw_id in enumerate(payload["ids"]):
        document = _at(documents, index)
        metadata = _metadata(_at(metadatas, index))
        record_id = _text(raw_id) or placeholder_id("doc", index, {"document": document, "metadata": metadata})
        records.append(
            Record(
                id=record_id,
                document=document if isinstance(document, str) else "",
                metadata=metadata,
                embedding=_embedding(_at(embeddings, index)),
            )
        )
    return records


LIST_RULES: tuple[ShapeRule, ...] = (
    ShapeRule(
        "items",
        _has_list("items"),
        lambda payload: [_record_from_item(entry, index) for index, entry in enumerate(payload["items"])],
    ),
    ShapeRule(
        "array",
        lambda payload: isinstance(payload, list),
        lambda payload: [_record_from_document(entry, index) for index, entry in enumerate(payload)],
    ),
    # must precede "documents": a ChromaDB get result also carries a documents column
    ShapeRule("parallel", _is_flat_parallel, _records_from_flat_parallel),
    ShapeRule(
        "documents",
        _has_list("documents"),
        lambda payload: [_record_from_document(entry, index) for index, entry in enumerate(payload["documents"])],
    ),
)


def normalize_records_from_list(payload: Any) -> list[Record]:
    return _apply_rules(LIST_RULES, payload, "documents")


def count_documents(payload: Any) -> int:
    """Number of documents in a listing, counted exactly as the listing renders."""
    return len(normalize_records_from_list(payload))


# ---------------------------------------------------------------------------
# similarity queries
# ---------------------------------------------------------------------------


def _record_from_match(raw: Any, index: int) -> Record:
    entry = _mapping(raw)
    nested = entry.get("document")
    nested = nested if isinstance(nested, Mapping) else {}
    record_id = _identifier(entry, ("id", "documentId"), "match", index)
    if is_placeholder_id(record_id) and _text(nested.get("id")):
        record_id = nested["id"]
    document = _text(
        _dig(nested, "properties", "content"),
        entry.get("content"),
        entry.get("text"),
    )
    metadata = nested.get("metadata") if isinstance(nested.get("metadata"), Mapping) else entry.get("metadata")
    properties = nested.get("properties") if isinstance(nested.get("properties"), Mapping) else entry.get("properties")
    return Record(
        id=record_id,
        document=document or _placeholder_document(record_id),
        metadata=_metadata(metadata),
        properties=_properties(properties),
        embedding=_embedding(entry.get("embedding"), entry.get("vector")),
        distance=_number(entry.get("distance"), entry.get("score")),
    )


def _is_nested_parallel(payload: Any) -> bool:
    ids = _list_at(payload, "ids")
    return bool(ids) and isinstance(ids[0], list)


def _records_from_nested_parallel(payload: Mapping[str, Any]) -> list[Record]:
    """ChromaDB ``collection.query`` layout: one column set per query embedding.

    Only the first query's columns are read; missing entries default to an
    empty string, empty mapping, empty vector and zero distance.
    """
    documents = _nested_column(payload, "documents")
    metadatas = _nested_column(payload, "metadatas")
    embeddings = _nested_column(payload, "embeddings")
    distances = _nested_column(payload, "distances")
    records: list[Record] = []
    for index, raw_id in enumerate(payload["ids"][0]):
        document = _at(documents, index)
        metadata = _metadata(_at(metadatas, index))
        record_id = _text(raw_id) or placeholder_id("match", index, {"document": document, "metadata": metadata})
        records.append(
            Record(
                id=record_id,
                document=document if isinstance(document, str) else "",
                metadata=metadata,
                embedding=_embedding(_at(embeddings, index)),
                distance=_number(_at(distances, index)),
            )
        )
    return records


QUERY_RULES: tuple[ShapeRule, ...] = (
    ShapeRule(
        "matches",
        _has_list("properties", "matches"),
        lambda payload: [
            _record_from_match(entry, index) for index, entry in enumerate(payload["properties"]["matches"])
        ],
    ),
    ShapeRule("parallel", _is_nested_parallel, _records_from_nested_parallel),
)


def normalize_records_from_query(payload: Any) -> list[Record]:
    return _apply_rules(QUERY_RULES, payload, "query")


__all__ = [
    "COLLECTION_RULES",
    "LIST_RULES",
    "QUERY_RULES",
    "ShapeRule",
    "collection_descriptors",
    "count_documents",
    "normalize_collections",
    "normalize_records_from_list",
    "normalize_records_from_query",
]
