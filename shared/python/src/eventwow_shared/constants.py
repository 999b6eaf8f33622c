"""
constants.py — shared constants for the discovery service.

Table names, image types, plan tiers and display fallbacks are defined here
so the store layer, the scorers and the card builder stay in sync.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Store tables and views
# ---------------------------------------------------------------------------
SUPPLIERS_TABLE: Final = "suppliers"
SUPPLIER_IMAGES_TABLE: Final = "supplier_images"
REVIEW_STATS_TABLE: Final = "supplier_review_stats"
RANK_FEATURES_VIEW: Final = "supplier_rank_features_30d"
PERFORMANCE_VIEW: Final = "supplier_performance_30d"
MARKETPLACE_STATS_VIEW: Final = "marketplace_stats_30d"
CATEGORY_OPTIONS_TABLE: Final = "supplier_category_options"
SEO_LOCATION_SLUGS_TABLE: Final = "seo_location_slugs"

# PostgREST error code for "relation does not exist"
UNDEFINED_TABLE_CODE: Final = "42P01"

# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------
IMAGE_TYPE_HERO: Final = "hero"
IMAGE_TYPE_GALLERY: Final = "gallery"

PLAN_FREE: Final = "free"

DEFAULT_SUPPLIER_NAME: Final = "Supplier"
DEFAULT_SHORT_DESCRIPTION: Final = "Trusted event supplier on Eventwow."
DEFAULT_CATEGORY_LABEL: Final = "Event Supplier"

SEARCH_TERM_MAX_LENGTH: Final = 80

# Featured suppliers strip on the home page
FEATURED_DEFAULT_LIMIT: Final = 12
FEATURED_MAX_LIMIT: Final = 24
