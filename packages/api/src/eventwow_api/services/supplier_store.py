"""Read-only Supabase access for the discovery pipeline."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

import structlog
from supabase import Client

from eventwow_shared.constants import (
    CATEGORY_OPTIONS_TABLE,
    MARKETPLACE_STATS_VIEW,
    PERFORMANCE_VIEW,
    RANK_FEATURES_VIEW,
    REVIEW_STATS_TABLE,
    SEO_LOCATION_SLUGS_TABLE,
    SUPPLIER_IMAGES_TABLE,
    SUPPLIERS_TABLE,
    UNDEFINED_TABLE_CODE,
)
from eventwow_shared.db import get_supabase_client
from eventwow_shared.errors import DiscoveryError, UpstreamReadError
from eventwow_shared.models import (
    CategoryOption,
    MarketplaceBaseline,
    PerformanceAggregate,
    RankFeatureRow,
    Supplier,
    SupplierImage,
    SupplierReviewStats,
)

logger = structlog.get_logger(__name__)

SUPPLIER_COLUMNS = (
    "id,slug,business_name,description,short_description,about,services,"
    "location_label,listing_categories,base_city,base_postcode,is_published,"
    "is_verified,is_insured,fsa_rating_value,plan_type,created_at,updated_at"
)
IMAGE_COLUMNS = "id,supplier_id,type,path,sort_order,caption,created_at"
REVIEW_COLUMNS = "supplier_id,average_rating,review_count"
RANK_FEATURE_COLUMNS = (
    "supplier_id,quotes_sent_30d,accepted_30d,response_time_median_minutes_30d,"
    "last_active_at,is_verified,plan_type,acceptance_rate_30d,smoothed_acceptance,"
    "response_score,activity_score,volume_score,base_quality"
)
PERFORMANCE_COLUMNS = (
    "supplier_id,invites_count,quotes_sent_count,quotes_accepted_count,acceptance_rate,"
    "response_time_seconds_median,last_quote_sent_at,last_active_at"
)
CATEGORY_COLUMNS = "slug,display_name,label,short_description,is_active"


def _is_missing_relation(exc: Exception, relation: str) -> bool:
    code = str(getattr(exc, "code", "") or "")
    message = str(getattr(exc, "message", "") or exc).lower()
    if code == UNDEFINED_TABLE_CODE:
        return True
    # Clients that drop the code still report "relation ... does not exist".
    return not code and relation in message and "does not exist" in message


def _chunks(values: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class SupplierStore:
    """
    Thin wrapper over the Supabase tables the discovery pipeline reads.

    Every method is synchronous (supabase-py's client is) and either returns
    complete results or raises UpstreamReadError; partial results are never
    returned. Lookups by supplier id are split into batches of `batch_size`
    ids so the PostgREST `in` filter stays within URL limits.
    """

    def __init__(
        self,
        client_factory: Callable[[], Client] | None = None,
        *,
        batch_size: int = 200,
        max_candidates: int = 2000,
    ) -> None:
        self._client_factory = client_factory
        self.batch_size = batch_size
        self.max_candidates = max_candidates

    def _client(self) -> Client:
        if self._client_factory is not None:
            return self._client_factory()
        return get_supabase_client()

    def _execute(
        self,
        table: str,
        build: Callable[[Client], Any],
        *,
        tolerate_missing: bool = False,
    ) -> list[dict[str, Any]]:
        client = self._client()
        try:
            result = build(client).execute()
        except DiscoveryError:
            raise
        except Exception as exc:
            if tolerate_missing and _is_missing_relation(exc, table):
                logger.warning("store_relation_missing", table=table, error=str(exc))
                return []
            logger.error("store_read_failed", table=table, error=str(exc))
            raise UpstreamReadError(f"Failed to load {table}", table=table) from exc
        return list(result.data or [])

    def _execute_by_ids(
        self,
        table: str,
        columns: str,
        ids: Sequence[str],
        *,
        tolerate_missing: bool = False,
    ) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for batch in _chunks(list(ids), self.batch_size):
            rows.extend(
                self._execute(
                    table,
                    lambda c, batch=batch: c.table(table)
                    .select(columns)
                    .in_("supplier_id", list(batch)),
                    tolerate_missing=tolerate_missing,
                )
            )
        return rows

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    def fetch_published_suppliers(self) -> list[Supplier]:
        rows = self._execute(
            SUPPLIERS_TABLE,
            lambda c: c.table(SUPPLIERS_TABLE)
            .select(SUPPLIER_COLUMNS)
            .eq("is_published", True)
            .order("id")
            .limit(self.max_candidates),
        )
        if len(rows) >= self.max_candidates:
            logger.warning("store_candidate_cap_reached", max_candidates=self.max_candidates)
        return [Supplier.from_db_row(row) for row in rows]

    def fetch_supplier(self, supplier_id: str) -> Supplier | None:
        rows = self._execute(
            SUPPLIERS_TABLE,
            lambda c: c.table(SUPPLIERS_TABLE)
            .select(SUPPLIER_COLUMNS)
            .eq("id", supplier_id)
            .limit(1),
        )
        return Supplier.from_db_row(rows[0]) if rows else None

    def fetch_images(self, supplier_ids: Sequence[str]) -> dict[str, list[SupplierImage]]:
        by_supplier: dict[str, list[SupplierImage]] = {}
        if not supplier_ids:
            return by_supplier
        for row in self._execute_by_ids(SUPPLIER_IMAGES_TABLE, IMAGE_COLUMNS, supplier_ids):
            image = SupplierImage.from_db_row(row)
            by_supplier.setdefault(image.supplier_id, []).append(image)
        return by_supplier

    def fetch_review_stats(self, supplier_ids: Sequence[str]) -> dict[str, SupplierReviewStats]:
        if not supplier_ids:
            return {}
        rows = self._execute_by_ids(REVIEW_STATS_TABLE, REVIEW_COLUMNS, supplier_ids)
        stats = (SupplierReviewStats.from_db_row(row) for row in rows)
        return {s.supplier_id: s for s in stats}

    # ------------------------------------------------------------------
    # Performance aggregates
    # ------------------------------------------------------------------

    def fetch_rank_features(self, supplier_ids: Sequence[str]) -> dict[str, RankFeatureRow]:
        if not supplier_ids:
            return {}
        rows = self._execute_by_ids(
            RANK_FEATURES_VIEW, RANK_FEATURE_COLUMNS, supplier_ids, tolerate_missing=True
        )
        features = (RankFeatureRow.from_db_row(row) for row in rows)
        return {f.supplier_id: f for f in features}

    def fetch_performance(self, supplier_id: str) -> PerformanceAggregate | None:
        rows = self._execute(
            PERFORMANCE_VIEW,
            lambda c: c.table(PERFORMANCE_VIEW)
            .select(PERFORMANCE_COLUMNS)
            .eq("supplier_id", supplier_id)
            .limit(1),
            tolerate_missing=True,
        )
        return PerformanceAggregate.from_performance_row(rows[0]) if rows else None

    def fetch_baseline(self) -> float:
        rows = self._execute(
            MARKETPLACE_STATS_VIEW,
            lambda c: c.table(MARKETPLACE_STATS_VIEW)
            .select("global_acceptance_rate_30d")
            .limit(1),
        )
        return MarketplaceBaseline.from_db_row(rows[0] if rows else None).global_acceptance_rate_30d

    # ------------------------------------------------------------------
    # Categories / SEO
    # ------------------------------------------------------------------

    def fetch_category(self, slug: str) -> CategoryOption | None:
        rows = self._execute(
            CATEGORY_OPTIONS_TABLE,
            lambda c: c.table(CATEGORY_OPTIONS_TABLE)
            .select(CATEGORY_COLUMNS)
            .eq("slug", slug)
            .eq("is_active", True)
            .limit(1),
        )
        return CategoryOption.from_db_row(rows[0]) if rows else None

    def fetch_location_slugs(self) -> list[str]:
        rows = self._execute(
            SEO_LOCATION_SLUGS_TABLE,
            lambda c: c.table(SEO_LOCATION_SLUGS_TABLE).select("location_slug").limit(1000),
        )
        return [str(row["location_slug"]) for row in rows if row.get("location_slug")]
