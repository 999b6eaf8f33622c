"""Public supplier card shaping and casing adapter."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from eventwow_shared.config import settings
from eventwow_shared.constants import (
    DEFAULT_CATEGORY_LABEL,
    DEFAULT_SHORT_DESCRIPTION,
    DEFAULT_SUPPLIER_NAME,
    IMAGE_TYPE_HERO,
)
from eventwow_shared.models import (
    PerformanceAggregate,
    Supplier,
    SupplierImage,
    SupplierReviewStats,
)

from eventwow_api.ranking.signals import PerformanceSignals, build_performance_signals
from eventwow_api.utils.images import public_image_url

Casing = Literal["snake", "camel"]


class SupplierCard(BaseModel):
    """The one public representation of a supplier in listings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    slug: str
    name: str
    short_description: str
    location_label: str | None = None
    category_badges: list[str] = Field(default_factory=list)
    hero_image_url: str | None = None
    performance: PerformanceSignals = Field(default_factory=PerformanceSignals)
    badges: list[str] = Field(default_factory=list)
    review_rating: float | None = None
    review_count: int = 0
    rank_hint: str | None = None


def _clean(value: str | None) -> str:
    return (value or "").strip()


def display_location(supplier: Supplier) -> str | None:
    label = _clean(supplier.location_label)
    if label:
        return label
    parts = [p for p in (_clean(supplier.base_city), _clean(supplier.base_postcode)) if p]
    return " - ".join(parts) or None


def category_badges(categories: Iterable[str]) -> list[str]:
    labels = [_clean(c) for c in categories if _clean(c)]
    return labels or [DEFAULT_CATEGORY_LABEL]


def hero_image(images: Iterable[SupplierImage]) -> SupplierImage | None:
    heroes = [img for img in images if img.type == IMAGE_TYPE_HERO and _clean(img.path)]
    if not heroes:
        return None
    return min(heroes, key=lambda img: (img.sort_order, img.id or ""))


def build_card(
    supplier: Supplier,
    images: Sequence[SupplierImage],
    *,
    aggregate: PerformanceAggregate | None = None,
    review: SupplierReviewStats | None = None,
    rank_hint: str | None = None,
    now: datetime | None = None,
    supabase_url: str | None = None,
    bucket: str | None = None,
) -> SupplierCard:
    hero = hero_image(images)
    signals = build_performance_signals(aggregate, now)
    short_description = (
        _clean(supplier.short_description)
        or _clean(supplier.description)
        or DEFAULT_SHORT_DESCRIPTION
    )
    return SupplierCard(
        id=supplier.id,
        slug=_clean(supplier.slug),
        name=_clean(supplier.business_name) or DEFAULT_SUPPLIER_NAME,
        short_description=short_description,
        location_label=display_location(supplier),
        category_badges=category_badges(supplier.listing_categories),
        hero_image_url=public_image_url(
            supabase_url if supabase_url is not None else settings.supabase_url,
            bucket if bucket is not None else settings.image_bucket,
            hero.path if hero else None,
        ),
        performance=signals,
        badges=list(signals.badges),
        review_rating=review.average_rating if review else None,
        review_count=review.review_count if review else 0,
        rank_hint=rank_hint,
    )


def serialize_model(model: BaseModel, casing: Casing = "snake") -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=casing == "camel")


def serialize_cards(cards: Iterable[SupplierCard], casing: Casing = "snake") -> list[dict[str, Any]]:
    """Dump cards as JSON-ready dicts, with camelCase keys when requested."""
    return [serialize_model(card, casing) for card in cards]
