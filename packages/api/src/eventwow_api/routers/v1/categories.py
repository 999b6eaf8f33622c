"""Category page endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from eventwow_api.dependencies import PageParams, get_casing, get_discovery_pipeline
from eventwow_api.responses import ERROR_RESPONSES, listing_response
from eventwow_api.services.discovery_service import (
    DiscoveryPipeline,
    DiscoveryQuery,
    ListingSort,
)
from eventwow_api.services.supplier_cards import Casing

router = APIRouter(prefix="/categories", tags=["categories"], responses=ERROR_RESPONSES)


@router.get("/{slug}/suppliers")
async def category_suppliers(
    slug: str,
    pagination: PageParams = Depends(),
    location_slug: str | None = Query(None, max_length=120),
    sort: ListingSort = Query("recommended", description="recommended | newest"),
    casing: Casing = Depends(get_casing),
    pipeline: DiscoveryPipeline = Depends(get_discovery_pipeline),
):
    listing = await pipeline.rank(
        DiscoveryQuery(
            category_slug=slug,
            location_slug=location_slug,
            page=pagination.page,
            page_size=pagination.page_size,
            sort=sort,
        )
    )
    category = listing.category
    return listing_response(
        listing,
        path=f"/v1/categories/{listing.category_slug}/suppliers",
        query={"location_slug": listing.location_slug, "sort": listing.sort},
        casing=casing,
        category_slug=listing.category_slug,
        location_slug=listing.location_slug,
        category_name=category.name if category else None,
        category_description=category.short_description if category else None,
        sort=listing.sort,
    )
