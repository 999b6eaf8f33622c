"""
eventwow_shared.models — Pydantic models matching each store table or view.

All row models provide:
  .from_db_row(row: dict) -> Model
"""

from eventwow_shared.models.performance import (
    MarketplaceBaseline,
    PerformanceAggregate,
    RankFeatureRow,
    RankFeatures,
)
from eventwow_shared.models.suppliers import (
    CategoryOption,
    Supplier,
    SupplierImage,
    SupplierReviewStats,
)

__all__ = [
    "Supplier",
    "SupplierImage",
    "SupplierReviewStats",
    "CategoryOption",
    "PerformanceAggregate",
    "RankFeatures",
    "RankFeatureRow",
    "MarketplaceBaseline",
]
