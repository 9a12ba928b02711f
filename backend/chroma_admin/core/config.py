"""Facade settings: a YAML file first, then ``CHADM_*`` environment variables.

Only tuning knobs live here. Connection strings and tokens are never part of
the settings; they arrive with each request.

Example ``~/.config/chroma-admin/config.yaml``::

    upstream:
      timeout: 15
      collections_limit: 100
      count_fetch_limit: 1000
    query:
      top_k: 10
    direct:
      page_size: 20
    server:
      cors_origins: ["http://localhost:3000"]
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "CHADM_"
CONFIG_ENV = f"{ENV_PREFIX}CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/chroma-admin/config.yaml")

# (section, key) in the YAML file -> Settings field
YAML_FIELDS: Mapping[tuple[str, str], str] = {
    ("upstream", "timeout"): "upstream_timeout",
    ("upstream", "collections_limit"): "collections_limit",
    ("upstream", "count_fetch_limit"): "count_fetch_limit",
    ("query", "top_k"): "query_top_k",
    ("direct", "page_size"): "direct_page_size",
    ("server", "cors_origins"): "cors_origins",
}


class Settings(BaseModel):
    upstream_timeout: float = Field(default=30.0, gt=0)
    collections_limit: int = Field(default=100, ge=1)
    count_fetch_limit: int = Field(default=1000, ge=1)
    query_top_k: int = Field(default=10, ge=1)
    direct_page_size: int = Field(default=20, ge=1)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    model_config = {"extra": "ignore"}

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        if isinstance(value, (list, tuple)):
            return [str(origin) for origin in value]
        raise TypeError("cors_origins must be a list or a comma-separated string")

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Build settings from ``path`` (or the default location) plus env overrides.

        A missing file is not an error; defaults apply.
        """
        values: dict[str, Any] = {}
        config_path = _config_path(path)
        if config_path is not None and config_path.is_file():
            values.update(_read_yaml_fields(config_path))
        values.update(_env_fields())
        return cls(**values)


def _config_path(path: Path | None) -> Path | None:
    if path is not None:
        return path.expanduser()
    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def _read_yaml_fields(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        document = yaml.safe_load(fh) or {}
    if not isinstance(document, Mapping):
        logger.warning("Ignoring config file %s: top level is not a mapping", path)
        return {}
    values: dict[str, Any] = {}
    for (section, key), field_name in YAML_FIELDS.items():
        block = document.get(section)
        if isinstance(block, Mapping) and key in block:
            values[field_name] = block[key]
    logger.debug("Loaded settings from %s", path, extra={"ctx_fields": sorted(values)})
    return values


def _env_fields() -> dict[str, str]:
    values: dict[str, str] = {}
    for field_name in Settings.model_fields:
        raw = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if raw is not None:
            values[field_name] = raw
    return values


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_yaml()


__all__ = ["DEFAULT_CONFIG_PATH", "ENV_PREFIX", "Settings", "get_settings"]
