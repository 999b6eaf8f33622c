"""SEO landing page endpoints ("/wedding-photographers-manchester" style slugs)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from eventwow_api.dependencies import PageParams, get_casing, get_discovery_pipeline
from eventwow_api.responses import ERROR_RESPONSES, listing_response
from eventwow_api.services.discovery_service import DiscoveryPipeline
from eventwow_api.services.supplier_cards import Casing

router = APIRouter(prefix="/seo", tags=["seo"], responses=ERROR_RESPONSES)


@router.get("/suppliers")
async def seo_suppliers(
    pagination: PageParams = Depends(),
    slug: str | None = Query(None, max_length=200, description="Combined <category>-<location> slug"),
    category_slug: str | None = Query(None, max_length=120),
    location_slug: str | None = Query(None, max_length=120),
    casing: Casing = Depends(get_casing),
    pipeline: DiscoveryPipeline = Depends(get_discovery_pipeline),
):
    seo = await pipeline.seo_page(
        slug=slug,
        category_slug=category_slug,
        location_slug=location_slug,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    listing = seo.listing
    body = listing_response(
        listing,
        path="/v1/seo/suppliers",
        query={"category_slug": listing.category_slug, "location_slug": listing.location_slug},
        casing=casing,
        category_slug=listing.category_slug,
        location_slug=listing.location_slug,
    )
    body["seo"] = {"meta": seo.meta, "schema": seo.schema}
    return body
