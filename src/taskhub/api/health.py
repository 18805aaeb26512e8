"""Health endpoints.  No authentication."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(request: Request) -> dict[str, Any]:
    """Status, timestamp, uptime and database state."""
    return await request.app.state.manager.health_check()


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    manager = request.app.state.manager
    if not manager.initialized or not await manager.store.ping():
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "reason": "Database not connected"},
        )
    return JSONResponse(content={"status": "ready"})


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "alive"}
