"""SEO landing-page helpers: slug resolution, page meta and JSON-LD."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from eventwow_shared.config import settings
from eventwow_shared.slugs import to_slug, to_title


def resolve_category_and_location(
    slug: str | None,
    location_slugs: Iterable[str],
) -> tuple[str | None, str | None]:
    """
    Split a combined "<category>-<location>" landing slug.

    Known location slugs are tried longest first so "wedding-cakes-greater-manchester"
    resolves to ("wedding-cakes", "greater-manchester") rather than stopping at
    "manchester". Returns (None, None) when no known location is a proper suffix.
    """
    normalized = to_slug(slug)
    if not normalized:
        return None, None
    ordered = sorted({to_slug(loc) for loc in location_slugs if to_slug(loc)}, key=lambda s: (-len(s), s))
    for loc in ordered:
        if normalized == loc:
            continue
        if normalized.endswith(f"-{loc}"):
            category = normalized[: -len(loc) - 1]
            if category:
                return category, loc
    return None, None


def build_seo_meta(
    category_slug: str,
    location_slug: str,
    *,
    site_url: str | None = None,
    site_name: str | None = None,
) -> dict[str, str]:
    site_url = (site_url or settings.public_site_url).rstrip("/")
    site_name = site_name or settings.site_name
    category = to_title(category_slug)
    location = to_title(location_slug)
    return {
        "title": f"{category} in {location} | {site_name}",
        "description": (
            f"Browse {category.lower()} suppliers in {location}. "
            f"Request quotes from trusted local vendors on {site_name}."
        ),
        "canonical": f"{site_url}/{to_slug(category_slug)}-{to_slug(location_slug)}",
    }


def build_item_list_schema(
    *,
    name: str,
    canonical: str,
    items: Sequence[tuple[str, str]],
    site_url: str | None = None,
) -> dict[str, Any]:
    """schema.org ItemList for the cards on the page, given (slug, name) pairs."""
    site_url = (site_url or settings.public_site_url).rstrip("/")
    return {
        "@context": "https://schema.org",
        "@type": "ItemList",
        "name": name,
        "itemListOrder": "http://schema.org/ItemListOrderDescending",
        "numberOfItems": len(items),
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": idx,
                "url": f"{site_url}/suppliers/{slug}",
                "name": item_name,
            }
            for idx, (slug, item_name) in enumerate(items, start=1)
        ],
        "url": canonical,
    }
