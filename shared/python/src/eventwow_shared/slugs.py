"""
slugs.py — slug and title normalisation shared by matching and display.

Category labels, location labels and query parameters all pass through the
same normaliser so that "DJs & Bands", "djs-bands" and " DJS  bands " compare
equal.

Usage:
    from eventwow_shared.slugs import to_slug, to_title

    to_slug("Greater Manchester")      # "greater-manchester"
    to_slug("DJ's & Bands")            # "djs-bands"
    to_title("greater-manchester")     # "Greater Manchester"
"""

from __future__ import annotations

import re
from typing import Any

_QUOTES_RE = re.compile(r"['\"]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def to_slug(value: Any) -> str:
    """
    Normalise free text into a URL-safe slug.

    Lowercases, drops quote characters, collapses every run of characters
    outside [a-z0-9] to a single hyphen and trims leading/trailing hyphens.
    None and non-string values are coerced with str(); None becomes "".

    The function is idempotent: to_slug(to_slug(x)) == to_slug(x).
    """
    if value is None:
        return ""
    text = _QUOTES_RE.sub("", str(value).strip().lower())
    return _NON_ALNUM_RE.sub("-", text).strip("-")


def to_title(slug: Any) -> str:
    """Turn a slug (or any text) into a display title: "djs-bands" -> "Djs Bands"."""
    s = to_slug(slug)
    if not s:
        return ""
    return " ".join(part[:1].upper() + part[1:] for part in s.split("-") if part)
