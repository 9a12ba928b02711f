"""Logging setup for chroma-admin.

Bearer tokens reach the facade as query parameters, so any log line that
echoes a request URL would leak them. Every record passes through
:class:`RedactTokenFilter` before it is formatted.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from typing import Any

import orjson

_DEFAULT_LEVEL = os.environ.get("CHADM_LOG_LEVEL", "INFO")
_DEFAULT_JSON = os.environ.get("CHADM_LOG_JSON", "1").lower() not in {"0", "false", "no"}

_SECRET_PARAM = re.compile(r"(?i)\b(token|password)=[^&\s\"']+")


def redact(text: str) -> str:
    return _SECRET_PARAM.sub(lambda match: f"{match.group(1)}=***", text)


class RedactTokenFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg, record.args = cleaned, None
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``ctx_*`` extras land in the payload without the prefix."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - thin wrapper
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        payload.update(
            {key[len("ctx_"):]: value for key, value in record.__dict__.items() if key.startswith("ctx_")}
        )
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = _DEFAULT_JSON) -> None:
    """Route everything through one redacting stdout handler."""
    logging.captureWarnings(True)
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RedactTokenFilter())
    handler.setFormatter(
        JsonFormatter() if use_json else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def mask_secret(value: str | None, visible: int = 4) -> str:
    """Printable stand-in for a token or password."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}..."


__all__ = ["JsonFormatter", "RedactTokenFilter", "configure_logging", "mask_secret", "redact"]
