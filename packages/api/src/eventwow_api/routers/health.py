"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from eventwow_shared import __version__
from eventwow_shared.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": __version__}


@router.get("/ready")
async def ready(request: Request):
    """Ready once the pipeline is built and store credentials are configured."""
    pipeline_ready = getattr(request.app.state, "discovery_pipeline", None) is not None
    store_configured = bool(settings.supabase_url and settings.supabase_service_key)
    if pipeline_ready and store_configured:
        return {"status": "ready"}
    return JSONResponse(
        status_code=503,
        content={
            "status": "not_ready",
            "checks": {"pipeline": pipeline_ready, "store_credentials": store_configured},
        },
    )
