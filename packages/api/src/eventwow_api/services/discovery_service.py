"""
services/discovery_service.py — the supplier discovery pipeline.

One DiscoveryPipeline instance is built by the app factory and shared by every
request. It owns nothing mutable except the baseline TTL cache; each call is
otherwise request-scoped.

Ranked listings (category page, location page, SEO landing page):
  1. read published suppliers, the marketplace baseline and the category record
  2. keep listable suppliers that match the category/location query
  3. read images, rank features and review stats for the survivors
  4. drop suppliers that fail the eligibility gate
  5. score, sort by (rank_score, match, last_active_at) desc then id asc
  6. slice the requested page

Free-text search replaces steps 2 and 5 with a substring filter and a
verified-then-recency sort. sort="newest" on a ranked listing keeps the
match filter but orders by last update instead of rank score. The featured
strip skips matching and orders by insurance, hygiene rating and a tie-break
seeded with the current day, so ties rotate daily but stay stable within it.

Page and page size are clamped here as well as in the HTTP layer.

All store reads run in worker threads (supabase-py is synchronous), fan out
with asyncio.gather and are bounded by the configured store timeout. Any
failed read aborts the request with UpstreamReadError.
"""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, TypeVar

import structlog

from eventwow_shared.constants import (
    FEATURED_DEFAULT_LIMIT,
    FEATURED_MAX_LIMIT,
    SEARCH_TERM_MAX_LENGTH,
)
from eventwow_shared.errors import NotFoundError, UpstreamReadError, ValidationError
from eventwow_shared.models import (
    CategoryOption,
    RankFeatureRow,
    RankFeatures,
    Supplier,
    SupplierImage,
    SupplierReviewStats,
)
from eventwow_shared.slugs import to_slug, to_title

from eventwow_api.ranking.composer import (
    RankResult,
    compute_rank,
    explain_rank,
    rank_hint,
    ranking_insights,
    safe_plan_type,
)
from eventwow_api.ranking.eligibility import EligibilityGate, EligibilityVerdict
from eventwow_api.ranking.matching import MatchResult, match_supplier
from eventwow_api.ranking.params import DEFAULT_PARAMS, RankingParams
from eventwow_api.ranking.quality import resolve_features
from eventwow_api.ranking.signals import PerformanceSignals, build_performance_signals
from eventwow_api.services.seo_service import (
    build_item_list_schema,
    build_seo_meta,
    resolve_category_and_location,
)
from eventwow_api.services.supplier_cards import SupplierCard, build_card
from eventwow_api.services.supplier_store import SupplierStore
from eventwow_api.utils.cache import TTLCache
from eventwow_api.utils.pagination import clamp_int

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ListingSort = Literal["recommended", "newest"]

BASELINE_CACHE_KEY = "marketplace_baseline"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ts(value: datetime | None) -> float:
    return value.timestamp() if value is not None else 0.0


@dataclass(frozen=True)
class DiscoveryQuery:
    category_slug: str | None = None
    location_slug: str | None = None
    page: int = 1
    page_size: int = 24
    sort: ListingSort = "recommended"


@dataclass
class RankedCandidate:
    supplier: Supplier
    verdict: EligibilityVerdict
    features: RankFeatures
    match: MatchResult
    rank: RankResult
    card: SupplierCard
    last_active_at: datetime | None = None

    def sort_key(self) -> tuple[float, float, float, str]:
        # Total order: ties on score and match fall back to recency, then id.
        return (
            -self.rank.rank_score,
            -self.rank.match,
            -_ts(self.last_active_at),
            self.supplier.id,
        )


@dataclass
class DiscoveryPage:
    items: list[SupplierCard]
    total: int
    page: int
    page_size: int
    category_slug: str | None = None
    location_slug: str | None = None
    category: CategoryOption | None = None
    term: str | None = None
    sort: ListingSort | None = None


@dataclass
class SeoPage:
    listing: DiscoveryPage
    meta: dict[str, str]
    schema: dict[str, Any]


@dataclass
class _Context:
    images: dict[str, list[SupplierImage]] = field(default_factory=dict)
    features: dict[str, RankFeatureRow] = field(default_factory=dict)
    reviews: dict[str, SupplierReviewStats] = field(default_factory=dict)


def matches_term(supplier: Supplier, term: str) -> bool:
    """Case-insensitive substring match over the searchable text fields."""
    needle = term.lower()
    haystack = [
        supplier.business_name,
        supplier.short_description,
        supplier.description,
        supplier.about,
        supplier.location_label,
        supplier.base_city,
        *supplier.listing_categories,
    ]
    return any(needle in (value or "").lower() for value in haystack)


def daily_tie_break(seed: str, supplier_id: str) -> int:
    """Stable pseudo-random order for one seed (the UTC date)."""
    digest = hashlib.sha256(f"{seed}:{supplier_id}".encode()).digest()
    return int.from_bytes(digest[:8], "big")


class DiscoveryPipeline:
    def __init__(
        self,
        store: SupplierStore,
        *,
        gate: EligibilityGate | None = None,
        params: RankingParams = DEFAULT_PARAMS,
        baseline_cache: TTLCache | None = None,
        timeout_seconds: float = 5.0,
        default_page_size: int = 24,
        max_page_size: int = 60,
        max_page: int = 2000,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.gate = gate or EligibilityGate()
        self.params = params
        self.baseline_cache = baseline_cache if baseline_cache is not None else TTLCache(180.0)
        self.timeout_seconds = timeout_seconds
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.max_page = max_page
        self._clock = clock

    # ------------------------------------------------------------------
    # Store reads
    # ------------------------------------------------------------------

    async def _read(self, fn: Callable[..., T], *args: Any) -> T:
        name = getattr(fn, "__name__", "store_read")
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            logger.error("store_read_timeout", read=name, timeout_seconds=self.timeout_seconds)
            raise UpstreamReadError(
                f"Timed out after {self.timeout_seconds}s",
                details={"read": name},
            ) from exc

    async def _baseline(self) -> float:
        cached = self.baseline_cache.get(BASELINE_CACHE_KEY)
        if cached is not None:
            return cached
        logger.debug("baseline_cache_miss")
        value = await self._read(self.store.fetch_baseline)
        self.baseline_cache.set(BASELINE_CACHE_KEY, value)
        return value

    async def _category(self, slug: str | None) -> CategoryOption | None:
        if not slug:
            return None
        return await self._read(self.store.fetch_category, slug)

    def _page_bounds(self, page: int | None, page_size: int | None) -> tuple[int, int]:
        return (
            clamp_int(page, 1, 1, self.max_page),
            clamp_int(page_size, self.default_page_size, 1, self.max_page_size),
        )

    async def _context(self, supplier_ids: Sequence[str]) -> _Context:
        if not supplier_ids:
            return _Context()
        images, features, reviews = await asyncio.gather(
            self._read(self.store.fetch_images, supplier_ids),
            self._read(self.store.fetch_rank_features, supplier_ids),
            self._read(self.store.fetch_review_stats, supplier_ids),
        )
        return _Context(images=images, features=features, reviews=reviews)

    # ------------------------------------------------------------------
    # Ranked listings
    # ------------------------------------------------------------------

    def _candidate(
        self,
        supplier: Supplier,
        match: MatchResult,
        ctx: _Context,
        baseline: float,
        now: datetime,
    ) -> RankedCandidate | None:
        images = ctx.images.get(supplier.id, [])
        verdict = self.gate.evaluate(supplier, images)
        if not verdict.can_publish:
            return None

        row = ctx.features.get(supplier.id)
        features = resolve_features(row, baseline, self.params, now)
        is_verified = (
            row.is_verified if row is not None and row.is_verified is not None else supplier.is_verified
        )
        plan_type = (row.plan_type if row is not None else None) or supplier.plan_type
        rank = compute_rank(
            features,
            match.category_match,
            match.location_match,
            is_verified,
            plan_type,
            self.params,
        )
        if rank.match <= 0:
            return None

        card = build_card(
            supplier,
            images,
            aggregate=row.aggregate() if row is not None else None,
            review=ctx.reviews.get(supplier.id),
            rank_hint=rank_hint(rank.rank_score, self.params),
            now=now,
        )
        return RankedCandidate(
            supplier=supplier,
            verdict=verdict,
            features=features,
            match=match,
            rank=rank,
            card=card,
            last_active_at=row.last_active_at if row is not None else None,
        )

    async def ranked_candidates(
        self, category_slug: str | None, location_slug: str | None
    ) -> tuple[list[RankedCandidate], CategoryOption | None]:
        """Full eligible, matched and sorted candidate list for a query."""
        if not category_slug and not location_slug:
            raise ValidationError("category_slug or location_slug is required")

        suppliers, baseline, category = await asyncio.gather(
            self._read(self.store.fetch_published_suppliers),
            self._baseline(),
            self._category(category_slug),
        )
        if category_slug and category is None:
            raise NotFoundError(
                "Category not found", details={"category_slug": category_slug}
            )

        matched: list[tuple[Supplier, MatchResult]] = []
        for supplier in suppliers:
            if not supplier.is_listable:
                continue
            match = match_supplier(
                category_slug,
                location_slug,
                categories=supplier.listing_categories,
                location_label=supplier.location_label,
                base_city=supplier.base_city,
            )
            # A category page only lists that category; location alone only boosts.
            if category_slug and match.category_match <= 0:
                continue
            if not category_slug and match.location_match <= 0:
                continue
            matched.append((supplier, match))

        ctx = await self._context([s.id for s, _ in matched])
        now = self._clock()
        ranked = [
            c
            for c in (self._candidate(s, m, ctx, baseline, now) for s, m in matched)
            if c is not None
        ]
        ranked.sort(key=RankedCandidate.sort_key)
        return ranked, category

    async def rank(self, query: DiscoveryQuery) -> DiscoveryPage:
        category_slug = to_slug(query.category_slug) or None
        location_slug = to_slug(query.location_slug) or None
        sort: ListingSort = "newest" if query.sort == "newest" else "recommended"
        page, page_size = self._page_bounds(query.page, query.page_size)
        log = logger.bind(category_slug=category_slug, location_slug=location_slug, sort=sort)

        ranked, category = await self.ranked_candidates(category_slug, location_slug)
        if sort == "newest":
            ranked.sort(key=lambda c: (-_ts(c.supplier.last_updated_at), c.supplier.id))
        offset = (page - 1) * page_size
        window = ranked[offset : offset + page_size]
        log.info(
            "discovery_ranked",
            total=len(ranked),
            page=page,
            page_size=page_size,
            returned=len(window),
        )
        return DiscoveryPage(
            items=[c.card for c in window],
            total=len(ranked),
            page=page,
            page_size=page_size,
            category_slug=category_slug,
            location_slug=location_slug,
            category=category,
            sort=sort,
        )

    # ------------------------------------------------------------------
    # Free-text search
    # ------------------------------------------------------------------

    async def search(
        self, term: str | None, page: int | None = 1, page_size: int | None = None
    ) -> DiscoveryPage:
        page, page_size = self._page_bounds(page, page_size)
        cleaned = (term or "").strip()[:SEARCH_TERM_MAX_LENGTH]
        if not cleaned:
            return DiscoveryPage(items=[], total=0, page=page, page_size=page_size, term="")

        suppliers = await self._read(self.store.fetch_published_suppliers)
        hits = [s for s in suppliers if s.is_listable and matches_term(s, cleaned)]
        ctx = await self._context([s.id for s in hits])
        now = self._clock()

        eligible: list[tuple[Supplier, SupplierCard]] = []
        for supplier in hits:
            images = ctx.images.get(supplier.id, [])
            if not self.gate.evaluate(supplier, images).can_publish:
                continue
            row = ctx.features.get(supplier.id)
            card = build_card(
                supplier,
                images,
                aggregate=row.aggregate() if row is not None else None,
                review=ctx.reviews.get(supplier.id),
                now=now,
            )
            eligible.append((supplier, card))

        eligible.sort(
            key=lambda pair: (
                0 if pair[0].is_verified else 1,
                -_ts(pair[0].last_updated_at),
                pair[0].id,
            )
        )
        offset = (page - 1) * page_size
        window = eligible[offset : offset + page_size]
        logger.info(
            "discovery_search",
            term=cleaned,
            total=len(eligible),
            page=page,
            page_size=page_size,
            returned=len(window),
        )
        return DiscoveryPage(
            items=[card for _, card in window],
            total=len(eligible),
            page=page,
            page_size=page_size,
            term=cleaned,
        )

    # ------------------------------------------------------------------
    # Featured strip
    # ------------------------------------------------------------------

    async def featured(self, limit: int | None = None) -> DiscoveryPage:
        """
        Home-page strip of eligible suppliers, no category or location needed.

        Insured suppliers first, then higher food hygiene rating, then a
        per-day pseudo-random order. The strip is a single page of at most
        FEATURED_MAX_LIMIT cards.
        """
        size = clamp_int(limit, FEATURED_DEFAULT_LIMIT, 1, FEATURED_MAX_LIMIT)
        suppliers = await self._read(self.store.fetch_published_suppliers)
        listable = [s for s in suppliers if s.is_listable]
        ctx = await self._context([s.id for s in listable])
        now = self._clock()
        seed = now.date().isoformat()

        picks: list[tuple[Supplier, SupplierCard]] = []
        for supplier in listable:
            images = ctx.images.get(supplier.id, [])
            if not self.gate.evaluate(supplier, images).can_publish:
                continue
            row = ctx.features.get(supplier.id)
            card = build_card(
                supplier,
                images,
                aggregate=row.aggregate() if row is not None else None,
                review=ctx.reviews.get(supplier.id),
                now=now,
            )
            picks.append((supplier, card))

        picks.sort(
            key=lambda pair: (
                0 if pair[0].is_insured else 1,
                -pair[0].fsa_rating_score,
                daily_tie_break(seed, pair[0].id),
                pair[0].id,
            )
        )
        logger.info("discovery_featured", total=len(picks), limit=size, seed=seed)
        return DiscoveryPage(
            items=[card for _, card in picks[:size]],
            total=len(picks),
            page=1,
            page_size=size,
        )

    # ------------------------------------------------------------------
    # SEO landing pages
    # ------------------------------------------------------------------

    async def seo_page(
        self,
        slug: str | None = None,
        category_slug: str | None = None,
        location_slug: str | None = None,
        page: int | None = 1,
        page_size: int | None = None,
    ) -> SeoPage:
        category = to_slug(category_slug)
        location = to_slug(location_slug)
        if (not category or not location) and to_slug(slug):
            known = await self._read(self.store.fetch_location_slugs)
            resolved_category, resolved_location = resolve_category_and_location(slug, known)
            category = category or (resolved_category or "")
            location = location or (resolved_location or "")
        if not category or not location:
            raise ValidationError(
                "Missing category_slug/location_slug or resolvable slug",
                details={"slug": slug},
            )

        listing = await self.rank(
            DiscoveryQuery(
                category_slug=category,
                location_slug=location,
                page=page,
                page_size=page_size,
            )
        )
        meta = build_seo_meta(category, location)
        schema = build_item_list_schema(
            name=f"{to_title(category)} in {to_title(location)}",
            canonical=meta["canonical"],
            items=[(card.slug, card.name) for card in listing.items],
        )
        return SeoPage(listing=listing, meta=meta, schema=schema)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    async def explain_supplier(
        self,
        supplier_id: str,
        category_slug: str | None = None,
        location_slug: str | None = None,
    ) -> dict[str, Any]:
        """Score breakdown for one supplier in a category/location context."""
        category_slug = to_slug(category_slug) or None
        location_slug = to_slug(location_slug) or None

        supplier, rows, images, baseline = await asyncio.gather(
            self._read(self.store.fetch_supplier, supplier_id),
            self._read(self.store.fetch_rank_features, [supplier_id]),
            self._read(self.store.fetch_images, [supplier_id]),
            self._baseline(),
        )
        if supplier is None:
            raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})

        row = rows.get(supplier.id)
        features = resolve_features(row, baseline, self.params, self._clock())
        match = match_supplier(
            category_slug,
            location_slug,
            categories=supplier.listing_categories,
            location_label=supplier.location_label,
            base_city=supplier.base_city,
        )
        is_verified = (
            row.is_verified if row is not None and row.is_verified is not None else supplier.is_verified
        )
        plan_type = safe_plan_type(
            (row.plan_type if row is not None else None) or supplier.plan_type, self.params
        )
        rank = compute_rank(
            features,
            match.category_match,
            match.location_match,
            is_verified,
            plan_type,
            self.params,
        )
        aggregate = row.aggregate() if row is not None else None
        quotes_sent = aggregate.quotes_sent if aggregate else 0
        quotes_accepted = aggregate.quotes_accepted if aggregate else 0
        return {
            "supplier": {"id": supplier.id, "name": supplier.business_name or "Supplier"},
            "context": {"category_slug": category_slug, "location_slug": location_slug},
            "raw": {
                "quotes_sent_30d": quotes_sent,
                "accepted_30d": quotes_accepted,
                "acceptance_rate_30d": aggregate.acceptance_rate if aggregate else None,
                "response_time_median_minutes_30d": (
                    aggregate.response_minutes if aggregate else None
                ),
                "last_active_at": (
                    aggregate.last_active_at.isoformat()
                    if aggregate and aggregate.last_active_at
                    else None
                ),
                "is_verified": is_verified,
                "plan_type": plan_type,
            },
            "components": features.model_dump(),
            "match": {
                "category_match": match.category_match,
                "location_match": match.location_match,
                "match": rank.match,
            },
            "final": {
                "verified_boost": rank.verified_boost,
                "plan_boost": rank.plan_boost,
                "rank_score": rank.rank_score,
                "rank_hint": rank_hint(rank.rank_score, self.params),
            },
            "explanations": explain_rank(
                rank,
                features,
                category_match=match.category_match,
                location_match=match.location_match,
                quotes_sent=quotes_sent,
                quotes_accepted=quotes_accepted,
            ),
            "insights": ranking_insights(features),
            "eligibility": self.gate.evaluate(supplier, images.get(supplier.id, [])).to_dict(),
        }

    async def ranking_contexts(self) -> dict[str, list[dict[str, str]]]:
        """Category and location slugs present on published suppliers."""
        suppliers = await self._read(self.store.fetch_published_suppliers)
        categories: set[str] = set()
        locations: set[str] = set()
        for supplier in suppliers:
            categories.update(s for s in map(to_slug, supplier.listing_categories) if s)
            locations.update(
                s for s in (to_slug(supplier.location_label), to_slug(supplier.base_city)) if s
            )
        return {
            "categories": [{"slug": s, "label": to_title(s)} for s in sorted(categories)],
            "locations": [{"slug": s, "label": to_title(s)} for s in sorted(locations)],
        }

    async def supplier_performance(self, supplier_id: str) -> PerformanceSignals:
        supplier, aggregate = await asyncio.gather(
            self._read(self.store.fetch_supplier, supplier_id),
            self._read(self.store.fetch_performance, supplier_id),
        )
        if supplier is None:
            raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})
        return build_performance_signals(aggregate, self._clock())
