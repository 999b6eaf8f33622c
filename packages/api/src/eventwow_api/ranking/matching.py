"""Category and location match strengths.

The two axes are independent so callers can require a category match while
letting location only boost ordering.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from eventwow_shared.slugs import to_slug

EXACT_MATCH = 1.0
PARTIAL_LOCATION_MATCH = 0.5


@dataclass(frozen=True)
class MatchResult:
    category_match: float
    location_match: float


def category_match_strength(query_slug: str | None, categories: Iterable[str]) -> float:
    needle = to_slug(query_slug)
    if not needle:
        return 0.0
    if any(to_slug(label) == needle for label in categories):
        return EXACT_MATCH
    return 0.0


def location_match_strength(
    query_slug: str | None,
    location_label: str | None = None,
    base_city: str | None = None,
) -> float:
    needle = to_slug(query_slug)
    if not needle:
        return 0.0
    stored = [s for s in (to_slug(location_label), to_slug(base_city)) if s]
    if any(s == needle for s in stored):
        return EXACT_MATCH
    # "manchester" matches "greater-manchester"
    if any(needle in s for s in stored):
        return PARTIAL_LOCATION_MATCH
    return 0.0


def match_supplier(
    category_slug: str | None,
    location_slug: str | None,
    *,
    categories: Iterable[str],
    location_label: str | None,
    base_city: str | None,
) -> MatchResult:
    return MatchResult(
        category_match=category_match_strength(category_slug, categories),
        location_match=location_match_strength(location_slug, location_label, base_city),
    )
