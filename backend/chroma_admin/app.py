"""FastAPI application setup for chroma-admin."""

from __future__ import annotations

import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from chroma_admin.api.routes_admin import router as admin_router
from chroma_admin.api.routes_collections import router as collections_router
from chroma_admin.api.routes_direct import router as direct_router
from chroma_admin.core.config import get_settings
from chroma_admin.core.errors import install_exception_handlers
from chroma_admin.core.logging import configure_logging
from chroma_admin.core.metrics import REQUEST_COUNT, REQUEST_LATENCY
from chroma_admin.utils.http import NO_CACHE_HEADERS

configure_logging()

app = FastAPI(
    title="chroma-admin",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

install_exception_handlers(app)


@app.middleware("http")
async def instrument(request: Request, call_next) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=str(response.status_code)).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint, method=request.method).observe(time.perf_counter() - start)
    if request.url.path.startswith("/api/"):
        response.headers.update(NO_CACHE_HEADERS)
    return response


app.include_router(collections_router, prefix="/api/collections", tags=["collections"])
app.include_router(direct_router, prefix="/api/direct/collections", tags=["direct"])
app.include_router(admin_router, prefix="", tags=["admin"])
