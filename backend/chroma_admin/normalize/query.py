"""Interpretation of the free-form query box."""

from __future__ import annotations

import math
from typing import Sequence


def parse_query(query: str | Sequence[float]) -> str | list[float]:
    """Return an embedding vector for ``"0.1, 0.2, 0.3"``-style input, else the text.

    A comma alone is not enough: every comma-separated token has to parse as
    a finite float, otherwise the input is treated as free text and returned
    unchanged. Sequences are taken to already be vectors.
    """
    if not isinstance(query, str):
        return [float(value) for value in query]
    if "," not in query:
        return query
    vector: list[float] = []
    for token in query.split(","):
        try:
            value = float(token.strip())
        except ValueError:
            return query
        if not math.isfinite(value):
            return query
        vector.append(value)
    return vector


def is_empty_query(query: str | Sequence[float] | None) -> bool:
    if query is None:
        return True
    if isinstance(query, str):
        return not query.strip()
    return len(query) == 0
