"""Internal dataclasses passed between the facade, services and upstream clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from chroma_admin.models.dto import Collection

AuthType = Literal["token", "basic", ""]


@dataclass(slots=True, frozen=True)
class IonosConnection:
    """Where and as whom to reach the IONOS document store for one request."""

    connection_string: str
    token: str

    @property
    def base_url(self) -> str:
        return self.connection_string.rstrip("/")

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@dataclass(slots=True, frozen=True)
class DirectConnection:
    """Connection settings for a ChromaDB server reached through its client library."""

    connection_string: str
    auth_type: AuthType = ""
    token: str = ""
    username: str = ""
    password: str = ""
    tenant: str = "default_tenant"
    database: str = "default_database"


@dataclass(slots=True)
class CollectionDescriptor:
    collection: Collection
    count_known: bool
    # False when the id was synthesized and there is nothing to look up upstream
    has_upstream_id: bool = True


@dataclass(slots=True)
class ErrorResult:
    """Failure outcome handed back instead of raising past a service boundary."""

    error: str
    status_code: int = 500
    details: Any = None


__all__ = [
    "AuthType",
    "CollectionDescriptor",
    "DirectConnection",
    "ErrorResult",
    "IonosConnection",
]
