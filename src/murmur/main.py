# src/murmur/main.py
"""Main entry point for the Murmur application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from murmur.api.v1 import (
    calls_router,
    messages_router,
    notifications_router,
    realtime_router,
)
from murmur.core.settings import settings
from murmur.realtime import RealtimeServer
from murmur.services.storage import get_storage_client

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=f"{settings.app_name} API",
    description="Social backend with realtime presence, messaging and live rooms",
    version=settings.app_version,
)

# Browser clients call the HTTP API cross-origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.add_middleware(GZipMiddleware)

app.include_router(messages_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(calls_router, prefix="/api/v1")
app.include_router(realtime_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    app.state.realtime_server = RealtimeServer()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    server: RealtimeServer | None = getattr(app.state, "realtime_server", None)
    if server:
        await server.close()
    await get_storage_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Describe the service and where its websocket lives."""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "websocket": "/api/v1/ws",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("murmur.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
