"""Standardized API response wrappers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from eventwow_api.services.discovery_service import DiscoveryPage
from eventwow_api.services.supplier_cards import Casing, serialize_cards
from eventwow_api.utils.pagination import build_links


class ResponseMeta(BaseModel):
    page: int | None = None
    page_size: int | None = None
    total_count: int | None = None


class ErrorDetail(BaseModel):
    code: str
    message: str
    retryable: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class ApiError(BaseModel):
    error: ErrorDetail


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ApiError, "description": "Malformed query"},
    404: {"model": ApiError, "description": "Unknown category or supplier"},
    503: {"model": ApiError, "description": "Store read failed; retry later"},
}


def wrap_response(
    data: Any,
    *,
    page: int | None = None,
    page_size: int | None = None,
    total_count: int | None = None,
    links: dict[str, str] | None = None,
    **extra_meta: Any,
) -> dict[str, Any]:
    """Build a standardized API response dict."""
    meta = ResponseMeta(page=page, page_size=page_size, total_count=total_count)
    return {
        "data": data,
        "meta": {
            **meta.model_dump(exclude_none=True),
            **{k: v for k, v in extra_meta.items() if v is not None},
        },
        "links": links or {},
    }


def error_response(
    code: str,
    message: str,
    *,
    retryable: bool = False,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a standardized error response dict."""
    err: dict[str, Any] = {"code": code, "message": message, "retryable": retryable}
    if details:
        err["details"] = details
    return {"error": err}


def listing_response(
    listing: DiscoveryPage,
    *,
    path: str,
    query: dict[str, Any],
    casing: Casing = "snake",
    **extra_meta: Any,
) -> dict[str, Any]:
    """Envelope for one page of supplier cards, with page links."""
    link_params = dict(query)
    if casing != "snake":
        link_params["casing"] = casing
    return wrap_response(
        serialize_cards(listing.items, casing),
        page=listing.page,
        page_size=listing.page_size,
        total_count=listing.total,
        links=build_links(
            path,
            link_params,
            page=listing.page,
            page_size=listing.page_size,
            total=listing.total,
        ),
        **extra_meta,
    )
