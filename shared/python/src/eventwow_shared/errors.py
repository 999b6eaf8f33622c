"""
errors.py — exception taxonomy for the discovery service.

Every error raised by the discovery core derives from DiscoveryError and
carries the error code, HTTP status and retryability the API layer needs to
render it. Eligibility failures are not errors: ineligible suppliers are
silently excluded from listings.

Usage:
    from eventwow_shared.errors import NotFoundError

    raise NotFoundError("Category not found", details={"slug": slug})
"""

from __future__ import annotations

from typing import Any


class DiscoveryError(Exception):
    """Base class for errors surfaced to API callers."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(DiscoveryError):
    """Store credentials or other required settings are missing. Not retried."""

    code = "CONFIGURATION_ERROR"
    status_code = 500


class UpstreamReadError(DiscoveryError):
    """A store read failed or timed out. The whole request is aborted."""

    code = "UPSTREAM_READ_FAILED"
    status_code = 503
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        if table:
            merged.setdefault("table", table)
        super().__init__(message, details=merged)
        self.table = table


class ValidationError(DiscoveryError):
    """Malformed query parameters."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(DiscoveryError):
    """A referenced record (category, supplier) does not exist or is inactive."""

    code = "NOT_FOUND"
    status_code = 404
