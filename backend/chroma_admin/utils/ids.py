"""ID helpers."""

from __future__ import annotations

import hashlib
from typing import Any

import orjson

PLACEHOLDER_MARK = "~"


def placeholder_id(prefix: str, index: int, entry: Any) -> str:
    """Deterministic stand-in id for an upstream entry that carries none.

    The leading ``~`` never appears in upstream-issued ids (UUIDs), and the
    digest keeps the value stable for the same entry across calls.
    """
    canonical = orjson.dumps(
        entry,
        option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS,
        default=str,
    )
    return f"{PLACEHOLDER_MARK}{prefix}-{index}-{hashlib.sha256(canonical).hexdigest()[:12]}"


def is_placeholder_id(value: str) -> bool:
    return value.startswith(PLACEHOLDER_MARK)
