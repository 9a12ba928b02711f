"""Administrative routes for chroma-admin."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from chroma_admin.api.dependencies import get_app_settings
from chroma_admin.core.config import Settings
from chroma_admin.core.metrics import metrics_response

router = APIRouter()


@router.get("/health", summary="Liveness check")
async def health() -> dict[str, bool]:
    return {"ok": True}


@router.get("/settings", summary="Effective non-secret settings")
async def read_settings(settings: Settings = Depends(get_app_settings)) -> dict[str, object]:
    return settings.model_dump()


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
