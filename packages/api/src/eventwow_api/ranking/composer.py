"""
ranking/composer.py — combine match strength and quality into one rank score.

  match      = category_match + location_weight * location_match
  rank_score = match_weight * min(1, match / max_match)
             + quality_weight * base_quality
             + verified_boost (verified suppliers only)
             + plan_boost (per plan tier, 0 for free)

The display hint ("Top match" / "Strong match" / "Good match") is derived from
rank_score and never affects ordering. Also provides the explanation lines for
the admin ranking inspector and the labels/tips for the supplier console.
"""

from __future__ import annotations

from dataclasses import dataclass

from eventwow_shared.constants import PLAN_FREE
from eventwow_shared.models import RankFeatures

from eventwow_api.ranking.params import DEFAULT_PARAMS, RankingParams
from eventwow_api.ranking.quality import clamp01

TOP_MATCH = "Top match"
STRONG_MATCH = "Strong match"
GOOD_MATCH = "Good match"


@dataclass(frozen=True)
class RankResult:
    match: float
    rank_score: float
    verified_boost: float
    plan_boost: float


def safe_plan_type(value: str | None, params: RankingParams = DEFAULT_PARAMS) -> str:
    plan = (value or PLAN_FREE).strip().lower()
    return plan if plan in params.plan_boosts else PLAN_FREE


def plan_boost(plan_type: str | None, params: RankingParams = DEFAULT_PARAMS) -> float:
    return float(params.plan_boosts.get(safe_plan_type(plan_type, params), 0.0))


def combined_match(
    category_match: float,
    location_match: float,
    params: RankingParams = DEFAULT_PARAMS,
) -> float:
    return max(0.0, category_match) + params.location_weight * max(0.0, location_match)


def compute_rank(
    features: RankFeatures,
    category_match: float,
    location_match: float,
    is_verified: bool,
    plan_type: str | None,
    params: RankingParams = DEFAULT_PARAMS,
) -> RankResult:
    match = combined_match(category_match, location_match, params)
    normalized_match = min(1.0, match / params.max_match)
    verified = params.verified_boost if is_verified else 0.0
    plan = plan_boost(plan_type, params)
    rank_score = (
        params.match_weight * normalized_match
        + params.quality_weight * clamp01(features.base_quality)
        + verified
        + plan
    )
    return RankResult(
        match=match,
        rank_score=rank_score,
        verified_boost=verified,
        plan_boost=plan,
    )


def rank_hint(rank_score: float, params: RankingParams = DEFAULT_PARAMS) -> str:
    if rank_score >= params.top_match_threshold:
        return TOP_MATCH
    if rank_score >= params.strong_match_threshold:
        return STRONG_MATCH
    return GOOD_MATCH


def _pct(value: float) -> str:
    return f"{value * 100:.1f}"


def explain_rank(
    rank: RankResult,
    features: RankFeatures,
    *,
    category_match: float,
    location_match: float,
    quotes_sent: int,
    quotes_accepted: int,
) -> list[str]:
    """Human-readable breakdown of a rank score, in display order."""
    lines = [
        f"Base quality: {_pct(features.base_quality)} / 100",
        f"Smoothed acceptance from {quotes_accepted}/{quotes_sent} quotes: "
        f"{_pct(features.smoothed_acceptance)}%",
        f"Response score: {_pct(features.response_score)} / 100",
        f"Activity score: {_pct(features.activity_score)} / 100",
        f"Volume confidence: {_pct(features.volume_score)} / 100",
        f"Context match: {rank.match:.2f} (category {clamp01(category_match) * 100:.0f}%, "
        f"location {clamp01(location_match) * 100:.0f}%)",
    ]
    if rank.verified_boost > 0:
        lines.append(f"Verified bonus applied (+{rank.verified_boost:.2f})")
    if rank.plan_boost > 0:
        lines.append(f"Plan bonus applied (+{rank.plan_boost:.2f})")
    lines.append(f"Final rank score: {rank.rank_score:.3f}")
    return lines


def ranking_insights(features: RankFeatures) -> dict:
    """Labels and improvement tips shown to a supplier about their own ranking."""
    tips: list[str] = []
    if features.response_score < 0.5:
        tips.append("Median response time is high. Enable notifications and reply sooner.")
    if features.activity_score < 0.5:
        tips.append("Activity score is low. Log in weekly to keep your profile fresh.")
    if features.smoothed_acceptance < 0.45:
        tips.append("Acceptance score is low. Quote promptly and keep pricing competitive.")

    if features.response_score < 0.5:
        response_bucket = "Needs improvement"
    elif features.response_score < 0.75:
        response_bucket = "Good"
    else:
        response_bucket = "Excellent"

    if features.volume_score < 0.35:
        volume_label = "Low"
    elif features.volume_score < 0.7:
        volume_label = "Medium"
    else:
        volume_label = "High"

    return {
        "base_quality_100": round(clamp01(features.base_quality) * 100),
        "acceptance_percent": round(clamp01(features.smoothed_acceptance) * 100),
        "response_bucket": response_bucket,
        "activity_label": (
            "Not active in 14+ days" if features.activity_score < 0.5 else "Active recently"
        ),
        "volume_label": volume_label,
        "tips": tips,
    }
