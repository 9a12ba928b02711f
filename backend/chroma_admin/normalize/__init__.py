"""Upstream payload normalization."""

from .query import is_empty_query, parse_query
from .shapes import (
    collection_descriptors,
    count_documents,
    normalize_collections,
    normalize_records_from_list,
    normalize_records_from_query,
)

__all__ = [
    "collection_descriptors",
    "count_documents",
    "is_empty_query",
    "normalize_collections",
    "normalize_records_from_list",
    "normalize_records_from_query",
    "parse_query",
]
