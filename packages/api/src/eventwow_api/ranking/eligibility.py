"""
ranking/eligibility.py — publish-eligibility gate for supplier listings.

A listing may only ever appear in public results when its profile is complete
enough to be worth showing. The gate is pure: it looks only at the supplier
row and its images, and the verdict is recomputed on every read because the
underlying fields change between reads.

Usage:
    from eventwow_api.ranking.eligibility import EligibilityGate

    verdict = EligibilityGate().evaluate(supplier, images)
    if not verdict.can_publish:
        print(verdict.reasons)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from eventwow_shared.constants import IMAGE_TYPE_GALLERY, IMAGE_TYPE_HERO
from eventwow_shared.models import Supplier, SupplierImage

MIN_SHORT_DESCRIPTION = 30
MIN_ABOUT = 120
MIN_CATEGORIES = 1
MIN_LOCATION_LABEL = 3
MIN_HERO_IMAGES = 1
MIN_GALLERY_IMAGES = 2
MIN_SERVICES = 3


@dataclass(frozen=True)
class GateCounts:
    hero_count: int
    gallery_count: int
    services_count: int
    categories_count: int


@dataclass(frozen=True)
class EligibilityVerdict:
    can_publish: bool
    checks: dict[str, bool]
    reasons: list[str]
    counts: GateCounts

    def to_dict(self) -> dict:
        return {
            "can_publish": self.can_publish,
            "checks": dict(self.checks),
            "reasons": list(self.reasons),
            "counts": {
                "hero_count": self.counts.hero_count,
                "gallery_count": self.counts.gallery_count,
                "services_count": self.counts.services_count,
                "categories_count": self.counts.categories_count,
            },
        }


def _trimmed(value: str | None) -> str:
    return (value or "").strip()


def _distinct_services(services: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for raw in services:
        value = _trimmed(raw)
        key = value.lower()
        if not value or key in seen:
            continue
        seen.add(key)
        out.append(value)
    return out


@dataclass(frozen=True)
class _Check:
    name: str
    reason: str
    passes: Callable[[Supplier, GateCounts], bool]


# Order is significant: reasons are reported in this order.
CHECKS: tuple[_Check, ...] = (
    _Check(
        "short_description",
        f"Short description must be at least {MIN_SHORT_DESCRIPTION} characters.",
        lambda s, c: len(_trimmed(s.short_description)) >= MIN_SHORT_DESCRIPTION,
    ),
    _Check(
        "about",
        f"About section must be at least {MIN_ABOUT} characters.",
        lambda s, c: len(_trimmed(s.about)) >= MIN_ABOUT,
    ),
    _Check(
        "categories",
        "Select at least one category.",
        lambda s, c: c.categories_count >= MIN_CATEGORIES,
    ),
    _Check(
        "location_label",
        f"Location label must be at least {MIN_LOCATION_LABEL} characters.",
        lambda s, c: len(_trimmed(s.location_label)) >= MIN_LOCATION_LABEL,
    ),
    _Check(
        "hero_image",
        "Upload a hero image.",
        lambda s, c: c.hero_count >= MIN_HERO_IMAGES,
    ),
    _Check(
        "gallery_images",
        f"Upload at least {MIN_GALLERY_IMAGES} gallery images.",
        lambda s, c: c.gallery_count >= MIN_GALLERY_IMAGES,
    ),
    _Check(
        "services",
        f"Add at least {MIN_SERVICES} services.",
        lambda s, c: c.services_count >= MIN_SERVICES,
    ),
)

CHECK_NAMES: tuple[str, ...] = tuple(check.name for check in CHECKS)


@dataclass(frozen=True)
class EligibilityGate:
    """Evaluates the completeness checks; disabled checks are skipped entirely."""

    disabled_checks: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        unknown = set(self.disabled_checks) - set(CHECK_NAMES)
        if unknown:
            raise ValueError(f"Unknown eligibility checks: {sorted(unknown)}")

    def evaluate(
        self, supplier: Supplier, images: Iterable[SupplierImage]
    ) -> EligibilityVerdict:
        images = list(images)
        counts = GateCounts(
            hero_count=sum(1 for img in images if img.type == IMAGE_TYPE_HERO),
            gallery_count=sum(1 for img in images if img.type == IMAGE_TYPE_GALLERY),
            services_count=len(_distinct_services(supplier.services)),
            categories_count=len([c for c in supplier.listing_categories if _trimmed(c)]),
        )

        checks: dict[str, bool] = {}
        reasons: list[str] = []
        for check in CHECKS:
            if check.name in self.disabled_checks:
                continue
            ok = check.passes(supplier, counts)
            checks[check.name] = ok
            if not ok:
                reasons.append(check.reason)

        return EligibilityVerdict(
            can_publish=not reasons,
            checks=checks,
            reasons=reasons,
            counts=counts,
        )


def evaluate(supplier: Supplier, images: Iterable[SupplierImage]) -> EligibilityVerdict:
    """Evaluate all checks with the default gate."""
    return EligibilityGate().evaluate(supplier, images)
