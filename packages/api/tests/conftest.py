"""Shared test fixtures for eventwow-api."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

_PASSTHROUGH = (
    "select", "neq", "gt", "gte", "lt", "lte",
    "ilike", "order", "range", "or_",
)


def make_chain(data=None, count=None, error=None):
    """Create a chainable mock that returns given data on execute().

    eq(), in_() and limit() filter the rows, so one table fixture can serve
    lookups by id as well as batched reads. When `error` is set, execute()
    raises it instead.
    """
    rows = list(data or [])
    chain = MagicMock()
    if error is not None:
        chain.execute.side_effect = error
    else:
        chain.execute.return_value = MagicMock(
            data=rows, count=len(rows) if count is None else count
        )
    for method in _PASSTHROUGH:
        getattr(chain, method).return_value = chain
    chain.eq.side_effect = lambda col, value: make_chain(
        [r for r in rows if r.get(col) == value], error=error
    )
    chain.in_.side_effect = lambda col, values: make_chain(
        [r for r in rows if r.get(col) in set(values)], error=error
    )
    chain.limit.side_effect = lambda n: make_chain(rows[:n], error=error)
    return chain


def make_supabase(table_data=None, errors=None):
    """Create a mock Supabase client.

    table_data: optional dict mapping table name -> list of rows.
    errors:     optional dict mapping table name -> exception raised on execute().
    All unmapped tables return empty results.
    """
    client = MagicMock()
    td = table_data or {}
    errs = errors or {}

    def _table(name):
        return make_chain(td.get(name, []), error=errs.get(name))

    client.table.side_effect = _table
    return client


class PostgrestError(Exception):
    """Stand-in for postgrest.APIError: carries a code and message."""

    def __init__(self, message, code=""):
        super().__init__(message)
        self.message = message
        self.code = code


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------

def supplier_row(supplier_id="sup-a", **overrides):
    """A published supplier row that passes every eligibility check."""
    row = {
        "id": supplier_id,
        "slug": f"{supplier_id}-events",
        "business_name": f"{supplier_id.upper()} Events",
        "description": "Legacy description.",
        "short_description": "Relaxed documentary wedding photography.",
        "about": (
            "We have photographed more than two hundred weddings across the "
            "north west, from intimate registry office ceremonies to large "
            "country house celebrations."
        ),
        "services": ["Weddings", "Portraits", "Corporate events"],
        "listing_categories": ["Photographers"],
        "location_label": "Manchester",
        "base_city": "Manchester",
        "base_postcode": "M1 1AA",
        "is_published": True,
        "is_verified": False,
        "plan_type": "free",
        "created_at": "2026-01-01T09:00:00+00:00",
        "updated_at": "2026-02-01T09:00:00+00:00",
    }
    row.update(overrides)
    return row


def image_rows(supplier_id="sup-a", hero=True, gallery=2):
    rows = []
    if hero:
        rows.append({
            "id": f"{supplier_id}-hero",
            "supplier_id": supplier_id,
            "type": "hero",
            "path": f"{supplier_id}/hero.jpg",
            "sort_order": 0,
        })
    for i in range(gallery):
        rows.append({
            "id": f"{supplier_id}-g{i}",
            "supplier_id": supplier_id,
            "type": "gallery",
            "path": f"{supplier_id}/gallery-{i}.jpg",
            "sort_order": i + 1,
        })
    return rows


def feature_row(supplier_id="sup-a", base_quality=0.5, **overrides):
    """A precomputed supplier_rank_features_30d row."""
    row = {
        "supplier_id": supplier_id,
        "quotes_sent_30d": 10,
        "accepted_30d": 4,
        "response_time_median_minutes_30d": 120,
        "last_active_at": (NOW - timedelta(days=2)).isoformat(),
        "is_verified": None,
        "plan_type": "free",
        "acceptance_rate_30d": 0.4,
        "smoothed_acceptance": 0.4,
        "response_score": 0.7,
        "activity_score": 0.9,
        "volume_score": 0.8,
        "base_quality": base_quality,
    }
    row.update(overrides)
    return row


def make_pipeline(table_data=None, errors=None, **kwargs):
    """A DiscoveryPipeline over a fake Supabase client with a fixed clock."""
    from eventwow_api.services.discovery_service import DiscoveryPipeline
    from eventwow_api.services.supplier_store import SupplierStore
    from eventwow_api.utils.cache import TTLCache

    client = make_supabase(table_data, errors)
    store = SupplierStore(
        client_factory=lambda: client,
        batch_size=kwargs.pop("batch_size", 200),
        max_candidates=kwargs.pop("max_candidates", 2000),
    )
    kwargs.setdefault("baseline_cache", TTLCache(180.0))
    kwargs.setdefault("clock", lambda: NOW)
    pipeline = DiscoveryPipeline(store, **kwargs)
    pipeline.client = client
    return pipeline


def photographers_tables():
    """Suppliers A, B and C for the photographers-in-manchester example."""
    return {
        "suppliers": [
            supplier_row("sup-a"),
            supplier_row("sup-b", location_label="Leeds", base_city="Leeds"),
            # C would rank first but has no hero image.
            supplier_row("sup-c", is_verified=True, plan_type="pro"),
        ],
        "supplier_images": [
            *image_rows("sup-a"),
            *image_rows("sup-b"),
            *image_rows("sup-c", hero=False),
        ],
        "supplier_rank_features_30d": [
            feature_row("sup-a", base_quality=0.9),
            feature_row("sup-b", base_quality=0.95),
            feature_row("sup-c", base_quality=1.0),
        ],
        "supplier_review_stats": [
            {"supplier_id": "sup-a", "average_rating": 4.8, "review_count": 12},
        ],
        "marketplace_stats_30d": [{"global_acceptance_rate_30d": 0.3}],
        "supplier_category_options": [
            {
                "slug": "photographers",
                "display_name": "Photographers",
                "short_description": "Wedding and event photographers",
                "is_active": True,
            },
        ],
        "seo_location_slugs": [
            {"location_slug": "manchester"},
            {"location_slug": "greater-manchester"},
            {"location_slug": "leeds"},
        ],
    }


# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def tables():
    return photographers_tables()


@pytest.fixture()
def pipeline(tables):
    return make_pipeline(tables)


@pytest.fixture()
def app(pipeline):
    """Create test FastAPI app around a pipeline backed by a mocked Supabase."""
    from eventwow_api.app import create_app
    return create_app(pipeline=pipeline)


@pytest.fixture()
def client(app):
    """HTTP test client."""
    return TestClient(app)


@pytest.fixture()
def _supabase_patch():
    """Patch get_supabase_client where the store imports it."""
    mock = make_supabase(photographers_tables())
    with patch("eventwow_api.services.supplier_store.get_supabase_client", return_value=mock):
        yield mock
