"""Supplier listing, search and per-supplier inspection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from eventwow_api.dependencies import PageParams, get_casing, get_discovery_pipeline
from eventwow_api.responses import ERROR_RESPONSES, listing_response, wrap_response
from eventwow_api.services.discovery_service import (
    DiscoveryPipeline,
    DiscoveryQuery,
    ListingSort,
)
from eventwow_api.services.supplier_cards import Casing, serialize_cards, serialize_model

router = APIRouter(prefix="/suppliers", tags=["suppliers"], responses=ERROR_RESPONSES)


@router.get("")
async def list_suppliers(
    pagination: PageParams = Depends(),
    category_slug: str | None = Query(None, max_length=120),
    location_slug: str | None = Query(None, max_length=120),
    sort: ListingSort = Query("recommended", description="recommended | newest"),
    casing: Casing = Depends(get_casing),
    pipeline: DiscoveryPipeline = Depends(get_discovery_pipeline),
):
    """Ranked suppliers for a category and/or location."""
    listing = await pipeline.rank(
        DiscoveryQuery(
            category_slug=category_slug,
            location_slug=location_slug,
            page=pagination.page,
            page_size=pagination.page_size,
            sort=sort,
        )
    )
    return listing_response(
        listing,
        path="/v1/suppliers",
        query={
            "category_slug": listing.category_slug,
            "location_slug": listing.location_slug,
            "sort": listing.sort,
        },
        casing=casing,
        category_slug=listing.category_slug,
        location_slug=listing.location_slug,
        category_name=listing.category.name if listing.category else None,
        sort=listing.sort,
    )


@router.get("/featured")
async def featured_suppliers(
    limit: int | None = Query(None, description="Number of cards (1-24, default 12)"),
    casing: Casing = Depends(get_casing),
    pipeline: DiscoveryPipeline = Depends(get_discovery_pipeline),
):
    """Featured suppliers strip for the home page."""
    listing = await pipeline.featured(limit)
    return wrap_response(
        serialize_cards(listing.items, casing),
        total_count=listing.total,
        limit=listing.page_size,
    )


@router.get("/search")
async def search_suppliers(
    pagination: PageParams = Depends(),
    q: str | None = Query(None, description="Free-text term"),
    casing: Casing = Depends(get_casing),
    pipeline: DiscoveryPipeline = Depends(get_discovery_pipeline),
):
    listing = await pipeline.search(q, page=pagination.page, page_size=pagination.page_size)
    return listing_response(
        listing,
        path="/v1/suppliers/search",
        query={"q": listing.term},
        casing=casing,
        term=listing.term,
    )


@router.get("/{supplier_id}/ranking")
async def supplier_ranking(
    supplier_id: str,
    category_slug: str | None = Query(None),
    location_slug: str | None = Query(None),
    pipeline: DiscoveryPipeline = Depends(get_discovery_pipeline),
):
    """Score breakdown for the admin ranking inspector."""
    data = await pipeline.explain_supplier(supplier_id, category_slug, location_slug)
    return wrap_response(data)


@router.get("/{supplier_id}/performance")
async def supplier_performance(
    supplier_id: str,
    casing: Casing = Depends(get_casing),
    pipeline: DiscoveryPipeline = Depends(get_discovery_pipeline),
):
    signals = await pipeline.supplier_performance(supplier_id)
    return wrap_response(serialize_model(signals, casing))
