"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import Literal

from fastapi import Query, Request

from eventwow_api.services.discovery_service import DiscoveryPipeline
from eventwow_api.services.supplier_cards import Casing
from eventwow_api.utils.pagination import PageParams


def get_discovery_pipeline(request: Request) -> DiscoveryPipeline:
    """The pipeline built by create_app(); tests swap it via dependency_overrides."""
    return request.app.state.discovery_pipeline


def get_casing(
    casing: Literal["snake", "camel"] = Query("snake", description="Response key casing"),
) -> Casing:
    return casing


__all__ = [
    "PageParams",
    "get_casing",
    "get_discovery_pipeline",
]
