"""
eventwow_shared — shared configuration, models and helpers for the Eventwow
supplier discovery service.

Usage:
    from eventwow_shared.config import settings
    from eventwow_shared.db import get_supabase_client
    from eventwow_shared.models import Supplier, SupplierImage, RankFeatureRow
    from eventwow_shared.slugs import to_slug, to_title
    from eventwow_shared.errors import NotFoundError, UpstreamReadError
"""

__version__ = "0.1.0"
