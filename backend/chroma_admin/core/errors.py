"""Error types surfaced by the facade and their JSON rendering."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chroma_admin.utils.http import NO_CACHE_HEADERS

logger = logging.getLogger(__name__)


class ChromaAdminError(Exception):
    """Base error rendered as ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ConnectionConfigError(ChromaAdminError):
    """Connection string or token missing from the request."""

    status_code = 400


class InvalidPayloadError(ChromaAdminError):
    status_code = 400


class UpstreamError(ChromaAdminError):
    """Upstream answered with a non-2xx status or could not be reached."""


class RecordNotFoundError(ChromaAdminError):
    status_code = 404


async def _handle_chroma_admin_error(request: Request, exc: ChromaAdminError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(exc.to_payload(), status_code=exc.status_code, headers=NO_CACHE_HEADERS)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        messages.append(f"{location}: {item.get('msg', 'invalid')}")
    return JSONResponse({"error": "; ".join(messages) or "Invalid request"}, status_code=400)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChromaAdminError, _handle_chroma_admin_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]


__all__ = [
    "ChromaAdminError",
    "ConnectionConfigError",
    "InvalidPayloadError",
    "RecordNotFoundError",
    "UpstreamError",
    "install_exception_handlers",
]
