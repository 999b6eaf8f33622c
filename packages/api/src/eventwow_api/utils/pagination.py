"""Page-number pagination helpers."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

from fastapi import Query

from eventwow_shared.config import settings


def clamp_int(value: int | None, fallback: int, lo: int, hi: int) -> int:
    if value is None:
        return fallback
    return max(lo, min(hi, int(value)))


class PageParams:
    """Dependency for extracting page/page_size query params.

    Out-of-range values are clamped rather than rejected: page to
    [1, max_page], page_size to [1, max_page_size].
    """

    def __init__(
        self,
        page: int | None = Query(None, description="1-based page number"),
        page_size: int | None = Query(
            None, description=f"Results per page (max {settings.max_page_size})"
        ),
    ) -> None:
        self.page = clamp_int(page, 1, 1, settings.max_page)
        self.page_size = clamp_int(
            page_size, settings.default_page_size, 1, settings.max_page_size
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def build_links(
    path: str,
    params: dict[str, Any],
    *,
    page: int,
    page_size: int,
    total: int,
) -> dict[str, str]:
    """Build self/next/prev links for a page-numbered response."""

    def _link(target_page: int) -> str:
        query = {k: v for k, v in params.items() if v not in (None, "")}
        query.update({"page": target_page, "page_size": page_size})
        return f"{path}?{urlencode(query)}"

    links: dict[str, str] = {"self": _link(page)}
    if page * page_size < total:
        links["next"] = _link(page + 1)
    if page > 1:
        links["prev"] = _link(page - 1)
    return links
