"""
models/suppliers.py — Pydantic models for supplier listing tables.

Rows are read-only from the discovery service's point of view: they are
written by the onboarding and editing flows.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from eventwow_shared.constants import PLAN_FREE


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Supplier(BaseModel):
    """Matches the suppliers table row."""

    id: str
    slug: str | None = None
    business_name: str | None = None
    description: str | None = None
    short_description: str | None = None
    about: str | None = None
    services: list[str] = Field(default_factory=list)
    listing_categories: list[str] = Field(default_factory=list)
    location_label: str | None = None
    base_city: str | None = None
    base_postcode: str | None = None
    is_published: bool = False
    is_verified: bool = False
    is_insured: bool = False
    fsa_rating_value: str | None = None
    plan_type: str = PLAN_FREE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("services", "listing_categories", mode="before")
    @classmethod
    def _null_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(x) for x in v if x is not None]
        return v

    @field_validator("is_published", "is_verified", "is_insured", mode="before")
    @classmethod
    def _null_bool(cls, v: Any) -> Any:
        return bool(v) if v is not None else False

    @field_validator("fsa_rating_value", mode="before")
    @classmethod
    def _rating_to_str(cls, v: Any) -> Any:
        if v is None or str(v).strip() == "":
            return None
        return str(v).strip()

    @field_validator("plan_type", mode="before")
    @classmethod
    def _null_plan(cls, v: Any) -> Any:
        return v or PLAN_FREE

    @field_validator("created_at", "updated_at")
    @classmethod
    def _tz(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @property
    def is_listable(self) -> bool:
        """Rows without a slug or business name cannot be linked to or rendered."""
        return bool((self.slug or "").strip()) and bool((self.business_name or "").strip())

    @property
    def fsa_rating_score(self) -> float:
        """Numeric food hygiene rating, -1 when absent or non-numeric ("Exempt")."""
        try:
            score = float(self.fsa_rating_value or "")
        except ValueError:
            return -1.0
        return score if math.isfinite(score) else -1.0

    @property
    def last_updated_at(self) -> datetime | None:
        return self.updated_at or self.created_at

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Supplier":
        return cls(**row)


class SupplierImage(BaseModel):
    """Matches the supplier_images table row."""

    id: str | None = None
    supplier_id: str
    type: str
    path: str | None = None
    sort_order: int = 0
    caption: str | None = None
    created_at: datetime | None = None

    @field_validator("id", "supplier_id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("sort_order", mode="before")
    @classmethod
    def _null_sort(cls, v: Any) -> Any:
        return 0 if v is None else v

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "SupplierImage":
        return cls(**row)


class SupplierReviewStats(BaseModel):
    """Matches the supplier_review_stats view row."""

    supplier_id: str
    average_rating: float | None = None
    review_count: int = 0

    @field_validator("supplier_id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("review_count", mode="before")
    @classmethod
    def _null_count(cls, v: Any) -> Any:
        return 0 if v is None else v

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "SupplierReviewStats":
        return cls(**row)


class CategoryOption(BaseModel):
    """Matches the supplier_category_options table row."""

    slug: str
    display_name: str | None = None
    label: str | None = None
    short_description: str | None = None
    is_active: bool = True

    @property
    def name(self) -> str:
        return (self.display_name or self.label or "").strip()

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "CategoryOption":
        return cls(**row)
