"""HTTP header and query helpers shared by the facade and upstream clients."""

from __future__ import annotations

import time

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def cache_buster() -> dict[str, str]:
    """Millisecond ``_t`` query parameter that defeats intermediary caches on GET requests."""
    return {"_t": str(int(time.time() * 1000))}
