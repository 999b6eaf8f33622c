"""Immutable ranking constants passed to the pure scorers."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from eventwow_shared.config import Settings


@dataclass(frozen=True)
class RankingParams:
    # Quality scorer
    acceptance_prior_strength: float = 5.0
    response_good_minutes: float = 30.0
    response_ceiling_minutes: float = 48 * 60.0
    activity_half_life_days: float = 14.0
    volume_saturation_sent: int = 20
    weight_acceptance: float = 0.4
    weight_response: float = 0.2
    weight_activity: float = 0.2
    weight_volume: float = 0.2

    # Rank composer
    location_weight: float = 0.25
    match_weight: float = 0.6
    quality_weight: float = 0.4
    verified_boost: float = 0.05
    plan_boosts: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({"free": 0.0, "pro": 0.03})
    )
    top_match_threshold: float = 0.80
    strong_match_threshold: float = 0.60

    @property
    def max_match(self) -> float:
        """Largest raw match value: full category hit plus full location hit."""
        return 1.0 + self.location_weight

    @classmethod
    def from_settings(cls, s: Settings) -> "RankingParams":
        return cls(
            acceptance_prior_strength=s.ranking_acceptance_prior_strength,
            response_good_minutes=s.ranking_response_good_minutes,
            response_ceiling_minutes=s.ranking_response_ceiling_minutes,
            activity_half_life_days=s.ranking_activity_half_life_days,
            volume_saturation_sent=s.ranking_volume_saturation_sent,
            weight_acceptance=s.ranking_weight_acceptance,
            weight_response=s.ranking_weight_response,
            weight_activity=s.ranking_weight_activity,
            weight_volume=s.ranking_weight_volume,
            location_weight=s.ranking_location_weight,
            match_weight=s.ranking_match_weight,
            quality_weight=s.ranking_quality_weight,
            verified_boost=s.ranking_verified_boost,
            plan_boosts=MappingProxyType(
                {k.strip().lower(): float(v) for k, v in s.ranking_plan_boosts.items()}
            ),
            top_match_threshold=s.ranking_top_match_threshold,
            strong_match_threshold=s.ranking_strong_match_threshold,
        )


DEFAULT_PARAMS = RankingParams()
