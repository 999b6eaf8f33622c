"""Ranking context endpoints for the admin inspector."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from eventwow_api.dependencies import get_discovery_pipeline
from eventwow_api.responses import ERROR_RESPONSES, wrap_response
from eventwow_api.services.discovery_service import DiscoveryPipeline

router = APIRouter(prefix="/ranking", tags=["ranking"], responses=ERROR_RESPONSES)


@router.get("/contexts")
async def ranking_contexts(
    pipeline: DiscoveryPipeline = Depends(get_discovery_pipeline),
):
    return wrap_response(await pipeline.ranking_contexts())
