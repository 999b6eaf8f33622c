"""
models/performance.py — 30-day performance aggregates and rank feature rows.

Both views are produced by an external batch job. The discovery service only
reads them, and must tolerate a supplier having no row at all.

  supplier_performance_30d    raw counters, response time in seconds
  supplier_rank_features_30d  raw counters (response time in minutes) plus the
                              precomputed quality sub-scores
  marketplace_stats_30d       single-row global acceptance rate
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator

from eventwow_shared.models.suppliers import _as_utc


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _to_count(value: Any) -> int | None:
    f = _to_float(value)
    return int(f) if f is not None else None


class PerformanceAggregate(BaseModel):
    """Raw 30-day counters for one supplier, response time normalised to minutes."""

    supplier_id: str | None = None
    invites_count: int | None = None
    quotes_sent: int = 0
    quotes_accepted: int = 0
    acceptance_rate: float | None = None
    response_minutes: float | None = None
    last_quote_sent_at: datetime | None = None
    last_active_at: datetime | None = None

    @field_validator("last_quote_sent_at", "last_active_at")
    @classmethod
    def _tz(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @classmethod
    def empty(cls, supplier_id: str | None = None) -> "PerformanceAggregate":
        return cls(supplier_id=supplier_id)

    @classmethod
    def from_performance_row(cls, row: dict[str, Any]) -> "PerformanceAggregate":
        """Build from a supplier_performance_30d row (response time in seconds)."""
        seconds = _to_float(row.get("response_time_seconds_median"))
        return cls(
            supplier_id=str(row["supplier_id"]) if row.get("supplier_id") is not None else None,
            invites_count=_to_count(row.get("invites_count")),
            quotes_sent=_to_count(row.get("quotes_sent_count")) or 0,
            quotes_accepted=_to_count(row.get("quotes_accepted_count")) or 0,
            acceptance_rate=_to_float(row.get("acceptance_rate")),
            response_minutes=seconds / 60 if seconds is not None else None,
            last_quote_sent_at=row.get("last_quote_sent_at") or None,
            last_active_at=row.get("last_active_at") or None,
        )


class RankFeatures(BaseModel):
    """Normalised quality sub-scores, each in [0, 1]."""

    smoothed_acceptance: float
    response_score: float
    activity_score: float
    volume_score: float
    base_quality: float


class RankFeatureRow(BaseModel):
    """Matches the supplier_rank_features_30d view row."""

    supplier_id: str
    quotes_sent_30d: int = 0
    accepted_30d: int = 0
    response_time_median_minutes_30d: float | None = None
    last_active_at: datetime | None = None
    is_verified: bool | None = None
    plan_type: str | None = None
    acceptance_rate_30d: float | None = None
    smoothed_acceptance: float | None = None
    response_score: float | None = None
    activity_score: float | None = None
    volume_score: float | None = None
    base_quality: float | None = None

    @field_validator("supplier_id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("quotes_sent_30d", "accepted_30d", mode="before")
    @classmethod
    def _null_count(cls, v: Any) -> Any:
        return _to_count(v) or 0

    @field_validator(
        "response_time_median_minutes_30d",
        "acceptance_rate_30d",
        "smoothed_acceptance",
        "response_score",
        "activity_score",
        "volume_score",
        "base_quality",
        mode="before",
    )
    @classmethod
    def _lenient_float(cls, v: Any) -> float | None:
        return _to_float(v)

    @field_validator("last_active_at", mode="before")
    @classmethod
    def _blank_ts(cls, v: Any) -> Any:
        return v or None

    @field_validator("last_active_at")
    @classmethod
    def _tz(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    def aggregate(self) -> PerformanceAggregate:
        return PerformanceAggregate(
            supplier_id=self.supplier_id,
            quotes_sent=self.quotes_sent_30d,
            quotes_accepted=self.accepted_30d,
            acceptance_rate=self.acceptance_rate_30d,
            response_minutes=self.response_time_median_minutes_30d,
            last_active_at=self.last_active_at,
        )

    def precomputed(self) -> RankFeatures | None:
        """Return the batch-computed features, or None unless all five are finite and in [0, 1]."""
        values = (
            self.smoothed_acceptance,
            self.response_score,
            self.activity_score,
            self.volume_score,
            self.base_quality,
        )
        for value in values:
            if value is None or not math.isfinite(value) or not 0.0 <= value <= 1.0:
                return None
        return RankFeatures(
            smoothed_acceptance=self.smoothed_acceptance,
            response_score=self.response_score,
            activity_score=self.activity_score,
            volume_score=self.volume_score,
            base_quality=self.base_quality,
        )

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "RankFeatureRow":
        return cls(**row)


class MarketplaceBaseline(BaseModel):
    """Matches the single marketplace_stats_30d row."""

    global_acceptance_rate_30d: float = 0.0

    @field_validator("global_acceptance_rate_30d", mode="before")
    @classmethod
    def _clamp(cls, v: Any) -> float:
        f = _to_float(v)
        if f is None:
            return 0.0
        return min(1.0, max(0.0, f))

    @classmethod
    def from_db_row(cls, row: dict[str, Any] | None) -> "MarketplaceBaseline":
        return cls(**(row or {}))
