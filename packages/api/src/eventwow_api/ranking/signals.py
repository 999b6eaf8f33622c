"""Public performance signals and badges shown on supplier cards."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from eventwow_shared.models import PerformanceAggregate

FAST_RESPONDER = "Fast responder"
HIGH_CONVERSION = "High conversion"
ACTIVE = "Active"

FAST_RESPONDER_HOURS = 6
FAST_RESPONDER_MIN_SENT = 3
HIGH_CONVERSION_RATE = 0.35
HIGH_CONVERSION_MIN_SENT = 5
ACTIVE_DAYS = 7


class PerformanceSignals(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    invites_count: int | None = None
    quotes_sent_count: int = 0
    quotes_accepted_count: int | None = None
    acceptance_rate: float | None = None
    typical_response_hours: float | None = None
    last_quote_sent_at: datetime | None = None
    last_active_at: datetime | None = None
    badges: list[str] = Field(default_factory=list)


def build_performance_signals(
    aggregate: PerformanceAggregate | None,
    now: datetime | None = None,
) -> PerformanceSignals:
    if aggregate is None:
        return PerformanceSignals()

    now = now or datetime.now(timezone.utc)
    sent = aggregate.quotes_sent
    hours = (
        round(aggregate.response_minutes / 60, 1)
        if aggregate.response_minutes is not None
        else None
    )

    badges: list[str] = []
    if hours is not None and hours <= FAST_RESPONDER_HOURS and sent >= FAST_RESPONDER_MIN_SENT:
        badges.append(FAST_RESPONDER)
    if (
        aggregate.acceptance_rate is not None
        and aggregate.acceptance_rate >= HIGH_CONVERSION_RATE
        and sent >= HIGH_CONVERSION_MIN_SENT
    ):
        badges.append(HIGH_CONVERSION)
    if aggregate.last_active_at is not None and (
        now - aggregate.last_active_at <= timedelta(days=ACTIVE_DAYS)
    ):
        badges.append(ACTIVE)

    return PerformanceSignals(
        invites_count=aggregate.invites_count,
        quotes_sent_count=sent,
        quotes_accepted_count=aggregate.quotes_accepted,
        acceptance_rate=aggregate.acceptance_rate,
        typical_response_hours=hours,
        last_quote_sent_at=aggregate.last_quote_sent_at,
        last_active_at=aggregate.last_active_at,
        badges=badges,
    )
