"""
ranking/quality.py — 30-day quality scoring.

Turns raw counters into four normalised sub-scores and a weighted base
quality. The batch job that fills supplier_rank_features_30d uses the same
formula, so a valid precomputed row is used as-is and the live computation
only runs when the row is missing or invalid.

Sub-scores (all clamped to [0, 1]):
  smoothed_acceptance  (accepted + k * baseline) / (sent + k)
  response_score       log-interpolated between a "good" and a ceiling
                       response time; unknown response time scores 0.5
  activity_score       exponential decay from last_active_at
  volume_score         min(1, ln(1 + sent) / ln(1 + saturation))
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

from eventwow_shared.models import PerformanceAggregate, RankFeatureRow, RankFeatures

from eventwow_api.ranking.params import DEFAULT_PARAMS, RankingParams

NEUTRAL_RESPONSE_SCORE = 0.5
_SECONDS_PER_DAY = 86400.0


def clamp01(value: float | None) -> float:
    if value is None:
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(n) or n < 0:
        return 0.0
    return min(n, 1.0)


def smoothed_acceptance(
    accepted: int,
    sent: int,
    baseline: float,
    params: RankingParams = DEFAULT_PARAMS,
) -> float:
    k = params.acceptance_prior_strength
    accepted = max(0, accepted)
    sent = max(0, sent)
    return clamp01((accepted + k * clamp01(baseline)) / (sent + k))


def response_score(
    response_minutes: float | None,
    params: RankingParams = DEFAULT_PARAMS,
) -> float:
    if response_minutes is None or not math.isfinite(response_minutes) or response_minutes <= 0:
        return NEUTRAL_RESPONSE_SCORE
    good = math.log(params.response_good_minutes)
    ceiling = math.log(params.response_ceiling_minutes)
    x = (math.log(response_minutes) - good) / (ceiling - good)
    return 1.0 - clamp01(x)


def activity_score(
    last_active_at: datetime | None,
    now: datetime | None = None,
    params: RankingParams = DEFAULT_PARAMS,
) -> float:
    if last_active_at is None:
        return 0.0
    now = now or datetime.now(timezone.utc)
    days = (now - last_active_at).total_seconds() / _SECONDS_PER_DAY
    if days < 0:
        return 1.0
    return math.exp(-math.log(2) * days / params.activity_half_life_days)


def volume_score(sent: int, params: RankingParams = DEFAULT_PARAMS) -> float:
    n = max(0, sent)
    return clamp01(math.log1p(n) / math.log1p(params.volume_saturation_sent))


def score_quality(
    aggregate: PerformanceAggregate,
    baseline: float,
    params: RankingParams = DEFAULT_PARAMS,
    now: datetime | None = None,
) -> RankFeatures:
    acceptance = smoothed_acceptance(
        aggregate.quotes_accepted, aggregate.quotes_sent, baseline, params
    )
    response = response_score(aggregate.response_minutes, params)
    activity = activity_score(aggregate.last_active_at, now, params)
    volume = volume_score(aggregate.quotes_sent, params)
    base = (
        params.weight_acceptance * acceptance
        + params.weight_response * response
        + params.weight_activity * activity
        + params.weight_volume * volume
    )
    return RankFeatures(
        smoothed_acceptance=acceptance,
        response_score=response,
        activity_score=activity,
        volume_score=volume,
        base_quality=clamp01(base),
    )


def resolve_features(
    row: RankFeatureRow | None,
    baseline: float,
    params: RankingParams = DEFAULT_PARAMS,
    now: datetime | None = None,
) -> RankFeatures:
    """Use the precomputed row when valid, otherwise score from raw counters."""
    if row is not None:
        precomputed = row.precomputed()
        if precomputed is not None:
            return precomputed
        return score_quality(row.aggregate(), baseline, params, now)
    return score_quality(PerformanceAggregate.empty(), baseline, params, now)
