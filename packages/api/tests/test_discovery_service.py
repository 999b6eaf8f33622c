"""Tests for the discovery pipeline orchestration."""

from __future__ import annotations

import time
from datetime import timedelta

import pytest

from eventwow_shared.errors import NotFoundError, UpstreamReadError, ValidationError
from eventwow_shared.models import Supplier

from eventwow_api.ranking.eligibility import EligibilityGate
from eventwow_api.services.discovery_service import (
    DiscoveryQuery,
    daily_tie_break,
    matches_term,
)
from tests.conftest import (
    NOW,
    PostgrestError,
    feature_row,
    image_rows,
    make_pipeline,
    photographers_tables,
    supplier_row,
)


def _tie_tables(n=7):
    """n eligible photographers with identical scores and varied recency."""
    ids = [f"sup-{i:02d}" for i in range(n)]
    return {
        "suppliers": [supplier_row(sid) for sid in reversed(ids)],
        "supplier_images": [img for sid in ids for img in image_rows(sid)],
        "supplier_rank_features_30d": [
            feature_row(
                sid,
                base_quality=0.5,
                # Pairs share a timestamp so the id tie-break is exercised too.
                last_active_at=(NOW - timedelta(days=i // 2)).isoformat(),
            )
            for i, sid in enumerate(ids)
        ],
        "supplier_category_options": [{"slug": "photographers", "is_active": True}],
    }


class TestRankedListing:
    @pytest.mark.asyncio
    async def test_photographers_in_manchester_example(self, pipeline):
        page = await pipeline.rank(
            DiscoveryQuery(category_slug="photographers", location_slug="manchester")
        )

        assert [card.id for card in page.items] == ["sup-a", "sup-b"]
        assert page.total == 2
        assert page.category.name == "Photographers"
        assert page.items[0].rank_hint == "Top match"
        assert page.items[0].review_rating == 4.8

    @pytest.mark.asyncio
    async def test_ineligible_supplier_never_listed_even_when_best(self, pipeline):
        page = await pipeline.rank(DiscoveryQuery(category_slug="photographers"))
        assert "sup-c" not in [card.id for card in page.items]

    @pytest.mark.asyncio
    async def test_disabling_a_check_lets_supplier_through(self):
        pipeline = make_pipeline(
            photographers_tables(), gate=EligibilityGate(frozenset({"hero_image"}))
        )
        page = await pipeline.rank(
            DiscoveryQuery(category_slug="photographers", location_slug="manchester")
        )
        assert page.items[0].id == "sup-c"

    @pytest.mark.asyncio
    async def test_category_page_excludes_other_categories(self):
        tables = photographers_tables()
        tables["suppliers"].append(
            supplier_row("sup-d", listing_categories=["Florists"])
        )
        tables["supplier_images"].extend(image_rows("sup-d"))
        page = await make_pipeline(tables).rank(
            DiscoveryQuery(category_slug="photographers", location_slug="manchester")
        )
        assert "sup-d" not in [card.id for card in page.items]

    @pytest.mark.asyncio
    async def test_location_only_listing(self, pipeline):
        page = await pipeline.rank(DiscoveryQuery(location_slug="leeds"))
        assert [card.id for card in page.items] == ["sup-b"]
        assert page.category is None

    @pytest.mark.asyncio
    async def test_slugs_are_normalised(self, pipeline):
        page = await pipeline.rank(
            DiscoveryQuery(category_slug=" Photographers ", location_slug="MANCHESTER")
        )
        assert page.category_slug == "photographers"
        assert page.location_slug == "manchester"
        assert page.total == 2

    @pytest.mark.asyncio
    async def test_requires_category_or_location(self, pipeline):
        with pytest.raises(ValidationError):
            await pipeline.rank(DiscoveryQuery())

    @pytest.mark.asyncio
    async def test_unknown_category_is_not_found(self, pipeline):
        with pytest.raises(NotFoundError):
            await pipeline.rank(DiscoveryQuery(category_slug="jugglers"))

    @pytest.mark.asyncio
    async def test_zero_eligible_is_an_empty_page(self):
        tables = photographers_tables()
        tables["supplier_images"] = []
        page = await make_pipeline(tables).rank(DiscoveryQuery(category_slug="photographers"))
        assert page.items == []
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_missing_features_still_ranked(self):
        tables = photographers_tables()
        del tables["supplier_rank_features_30d"]
        page = await make_pipeline(tables).rank(
            DiscoveryQuery(category_slug="photographers", location_slug="manchester")
        )
        assert [card.id for card in page.items] == ["sup-a", "sup-b"]
        assert page.items[0].performance.quotes_sent_count == 0


class TestOrdering:
    @pytest.mark.asyncio
    async def test_ties_break_on_recency_then_id(self):
        page = await make_pipeline(_tie_tables()).rank(
            DiscoveryQuery(category_slug="photographers", page_size=60)
        )
        assert [card.id for card in page.items] == [
            "sup-00", "sup-01", "sup-02", "sup-03", "sup-04", "sup-05", "sup-06",
        ]

    @pytest.mark.asyncio
    async def test_identical_requests_identical_output(self):
        query = DiscoveryQuery(category_slug="photographers", page_size=3, page=2)
        first = await make_pipeline(_tie_tables()).rank(query)
        second = await make_pipeline(_tie_tables()).rank(query)
        assert [c.model_dump() for c in first.items] == [c.model_dump() for c in second.items]

    @pytest.mark.asyncio
    async def test_pages_concatenate_to_full_set(self):
        pipeline = make_pipeline(_tie_tables(11))
        full = await pipeline.rank(DiscoveryQuery(category_slug="photographers", page_size=60))

        collected = []
        page_no = 1
        while True:
            page = await pipeline.rank(
                DiscoveryQuery(category_slug="photographers", page=page_no, page_size=4)
            )
            if not page.items:
                break
            assert page.total == 11
            collected.extend(card.id for card in page.items)
            page_no += 1

        assert collected == [card.id for card in full.items]
        assert len(set(collected)) == 11

    @pytest.mark.asyncio
    async def test_out_of_range_pages_are_clamped(self):
        pipeline = make_pipeline(_tie_tables())
        full = await pipeline.rank(DiscoveryQuery(category_slug="photographers", page_size=60))

        page = await pipeline.rank(
            DiscoveryQuery(category_slug="photographers", page=-1, page_size=3)
        )
        assert page.page == 1
        assert [card.id for card in page.items] == [card.id for card in full.items[:3]]

        tiny = await pipeline.rank(
            DiscoveryQuery(category_slug="photographers", page=1, page_size=-5)
        )
        assert tiny.page_size == 1
        assert len(tiny.items) == 1

        huge = await pipeline.rank(
            DiscoveryQuery(category_slug="photographers", page_size=500)
        )
        assert huge.page_size == 60

    @pytest.mark.asyncio
    async def test_newest_sort_orders_by_last_update(self):
        tables = photographers_tables()
        tables["suppliers"][0]["updated_at"] = "2026-05-01T09:00:00+00:00"
        pipeline = make_pipeline(tables)

        recommended = await pipeline.rank(DiscoveryQuery(category_slug="photographers"))
        newest = await pipeline.rank(
            DiscoveryQuery(category_slug="photographers", sort="newest")
        )

        # B has the better quality score, A the more recent update.
        assert [card.id for card in recommended.items] == ["sup-b", "sup-a"]
        assert [card.id for card in newest.items] == ["sup-a", "sup-b"]
        assert newest.sort == "newest"
        assert newest.total == recommended.total

    @pytest.mark.asyncio
    async def test_unknown_sort_falls_back_to_recommended(self, pipeline):
        page = await pipeline.rank(
            DiscoveryQuery(category_slug="photographers", sort="oldest")
        )
        assert page.sort == "recommended"
        assert [card.id for card in page.items] == ["sup-b", "sup-a"]


class TestSearch:
    @staticmethod
    def _cake_tables():
        return {
            "suppliers": [
                supplier_row("s1", business_name="Cake Studio", is_verified=False,
                             updated_at="2026-05-01T00:00:00+00:00"),
                supplier_row("s2", business_name="Sweet Things", listing_categories=["Wedding Cakes"],
                             is_verified=True, updated_at="2026-01-01T00:00:00+00:00"),
                supplier_row("s3", business_name="Bakes", short_description="Bespoke CAKES for every celebration.",
                             is_verified=False, updated_at="2026-03-01T00:00:00+00:00"),
                supplier_row("s4", business_name="Florals"),
                # Matches but fails eligibility.
                supplier_row("s5", business_name="Cake Shack", services=["Cakes"]),
            ],
            "supplier_images": [
                img for sid in ("s1", "s2", "s3", "s4", "s5") for img in image_rows(sid)
            ],
        }

    @pytest.mark.asyncio
    async def test_cake_example(self):
        page = await make_pipeline(self._cake_tables()).search("cake")
        # Verified first, then most recently updated.
        assert [card.id for card in page.items] == ["s2", "s1", "s3"]
        assert all(card.rank_hint is None for card in page.items)
        assert page.total == 3

    @pytest.mark.asyncio
    async def test_blank_term_returns_empty_page_without_reads(self):
        pipeline = make_pipeline(self._cake_tables())
        page = await pipeline.search("   ")
        assert page.items == [] and page.total == 0
        pipeline.client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_pages_are_clamped(self):
        page = await make_pipeline(self._cake_tables()).search("cake", page=-1, page_size=2)
        assert page.page == 1
        assert [card.id for card in page.items] == ["s2", "s1"]
        assert page.total == 3

    @pytest.mark.asyncio
    async def test_term_is_capped(self):
        page = await make_pipeline(self._cake_tables()).search("cake" + "x" * 200)
        assert page.term == ("cake" + "x" * 200)[:80]
        assert page.items == []

    def test_matches_term_fields(self):
        supplier = Supplier.from_db_row(
            supplier_row("s", business_name="Acme", location_label="Greater Manchester",
                         listing_categories=["DJs"])
        )
        assert matches_term(supplier, "manchester")
        assert matches_term(supplier, "djs")
        assert not matches_term(supplier, "cake")


class TestFailures:
    @pytest.mark.asyncio
    async def test_store_failure_aborts_request(self):
        pipeline = make_pipeline(
            photographers_tables(),
            errors={"supplier_review_stats": PostgrestError("connection reset")},
        )
        with pytest.raises(UpstreamReadError):
            await pipeline.rank(DiscoveryQuery(category_slug="photographers"))

    @pytest.mark.asyncio
    async def test_slow_store_times_out(self):
        pipeline = make_pipeline(photographers_tables(), timeout_seconds=0.05)

        def _slow():
            time.sleep(0.5)
            return []

        pipeline.store.fetch_published_suppliers = _slow
        with pytest.raises(UpstreamReadError):
            await pipeline.rank(DiscoveryQuery(category_slug="photographers"))


class TestBaselineCache:
    @pytest.mark.asyncio
    async def test_baseline_read_once_within_ttl(self):
        pipeline = make_pipeline(photographers_tables())
        calls = []
        original = pipeline.store.fetch_baseline

        def _counting():
            calls.append(1)
            return original()

        pipeline.store.fetch_baseline = _counting
        for _ in range(3):
            await pipeline.rank(DiscoveryQuery(category_slug="photographers"))
        assert len(calls) == 1

        pipeline.baseline_cache.clear()
        await pipeline.rank(DiscoveryQuery(category_slug="photographers"))
        assert len(calls) == 2


class TestSeoPage:
    @pytest.mark.asyncio
    async def test_combined_slug(self, pipeline):
        seo = await pipeline.seo_page(slug="photographers-manchester")
        assert seo.listing.category_slug == "photographers"
        assert seo.listing.location_slug == "manchester"
        assert [c.id for c in seo.listing.items] == ["sup-a", "sup-b"]
        assert seo.meta["title"] == "Photographers in Manchester | Eventwow"
        assert seo.schema["numberOfItems"] == 2

    @pytest.mark.asyncio
    async def test_explicit_slugs_win(self, pipeline):
        seo = await pipeline.seo_page(
            slug="photographers-manchester", category_slug="photographers", location_slug="leeds"
        )
        assert seo.listing.location_slug == "leeds"

    @pytest.mark.asyncio
    async def test_unresolvable_slug(self, pipeline):
        with pytest.raises(ValidationError):
            await pipeline.seo_page(slug="photographers-atlantis")


class TestInspection:
    @pytest.mark.asyncio
    async def test_explain_supplier(self, pipeline):
        data = await pipeline.explain_supplier("sup-a", "Photographers", "manchester")
        assert data["supplier"] == {"id": "sup-a", "name": "SUP-A Events"}
        assert data["match"]["match"] == pytest.approx(1.25)
        assert data["final"]["rank_score"] == pytest.approx(0.96)
        assert data["components"]["base_quality"] == 0.9
        assert data["raw"]["quotes_sent_30d"] == 10
        assert data["explanations"][-1] == "Final rank score: 0.960"
        assert "tips" in data["insights"]

    @pytest.mark.asyncio
    async def test_explain_unknown_supplier(self, pipeline):
        with pytest.raises(NotFoundError):
            await pipeline.explain_supplier("nope")

    @pytest.mark.asyncio
    async def test_ranking_contexts(self, pipeline):
        contexts = await pipeline.ranking_contexts()
        assert contexts["categories"] == [{"slug": "photographers", "label": "Photographers"}]
        assert [loc["slug"] for loc in contexts["locations"]] == ["leeds", "manchester"]

    @pytest.mark.asyncio
    async def test_supplier_performance(self):
        tables = photographers_tables()
        tables["supplier_performance_30d"] = [
            {
                "supplier_id": "sup-a",
                "invites_count": 12,
                "quotes_sent_count": 8,
                "quotes_accepted_count": 4,
                "acceptance_rate": 0.5,
                "response_time_seconds_median": 3600,
                "last_active_at": (NOW - timedelta(days=1)).isoformat(),
            }
        ]
        signals = await make_pipeline(tables).supplier_performance("sup-a")
        assert signals.invites_count == 12
        assert signals.badges == ["Fast responder", "High conversion", "Active"]

    @pytest.mark.asyncio
    async def test_supplier_performance_missing_view(self):
        tables = photographers_tables()
        pipeline = make_pipeline(
            tables,
            errors={"supplier_performance_30d": PostgrestError("missing", code="42P01")},
        )
        signals = await pipeline.supplier_performance("sup-a")
        assert signals.badges == []



class TestFeatured:
    @staticmethod
    def _featured_tables():
        tables = photographers_tables()
        tables["suppliers"] = [
            supplier_row("sup-a", fsa_rating_value="3"),
            supplier_row("sup-b", is_insured=True),
            # No hero image, so never featured.
            supplier_row("sup-c", is_insured=True, fsa_rating_value="5"),
            supplier_row("sup-d", fsa_rating_value=5),
            supplier_row("sup-e", fsa_rating_value="Exempt", listing_categories=["Florists"]),
            supplier_row("sup-f", location_label="Leeds", base_city="Leeds"),
            supplier_row("sup-g", slug=None),
        ]
        tables["supplier_images"] = [
            img
            for sid in ("sup-a", "sup-b", "sup-d", "sup-e", "sup-f", "sup-g")
            for img in image_rows(sid)
        ] + image_rows("sup-c", hero=False)
        return tables

    @pytest.mark.asyncio
    async def test_insured_then_rating_then_daily_order(self):
        page = await make_pipeline(self._featured_tables()).featured()

        unrated = sorted(["sup-e", "sup-f"], key=lambda sid: daily_tie_break("2026-06-01", sid))
        assert [card.id for card in page.items] == ["sup-b", "sup-d", "sup-a", *unrated]
        assert page.total == 5
        assert page.page_size == 12

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self):
        pipeline = make_pipeline(self._featured_tables())

        two = await pipeline.featured(2)
        assert [card.id for card in two.items] == ["sup-b", "sup-d"]
        assert two.total == 5

        assert (await pipeline.featured(0)).page_size == 1
        assert (await pipeline.featured(500)).page_size == 24

    @pytest.mark.asyncio
    async def test_same_day_same_order(self):
        first = await make_pipeline(self._featured_tables()).featured()
        second = await make_pipeline(self._featured_tables()).featured()
        assert [c.id for c in first.items] == [c.id for c in second.items]

    def test_daily_tie_break_is_seeded(self):
        assert daily_tie_break("2026-06-01", "sup-a") == daily_tie_break("2026-06-01", "sup-a")
        assert daily_tie_break("2026-06-01", "sup-a") != daily_tie_break("2026-06-02", "sup-a")
