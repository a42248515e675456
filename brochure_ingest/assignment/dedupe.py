"""Merge-by-key helpers for units, amenities, payment plans and images."""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, TypeVar

from ..catalog import BulkUnit, CatalogUnit
from ..pages.models import PaymentPlan

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNIT_CATEGORY_ORDER = [
    "Studio",
    "1BR",
    "2BR",
    "3BR",
    "4BR",
    "5BR",
    "Penthouse",
    "Duplex",
    "Townhouse",
]


def merge_by_key(
    items: Iterable[T],
    key: Callable[[T], Hashable],
    merge: Callable[[T, T], T],
) -> List[T]:
    """Fold items sharing a key with ``merge``, keeping first-seen order."""

    merged: Dict[Hashable, T] = {}
    for item in items:
        item_key = key(item)
        if item_key in merged:
            merged[item_key] = merge(merged[item_key], item)
        else:
            merged[item_key] = item
    return list(merged.values())


# Units ----------------------------------------------------------------------


def unit_dedupe_key(unit: BulkUnit) -> str:
    """Return ``<category>_<type name>_<area rounded down to 10>sqft``."""

    bedrooms = int(unit.bedrooms or 0)
    category = unit.category or f"{bedrooms}BR"
    type_name = unit.display_name.lower().replace(" ", "_")
    area_bucket = int(math.floor((unit.area or 0) / 10) * 10)
    return f"{category}_{type_name}_{area_bucket}sqft"


def merge_bulk_units(existing: BulkUnit, duplicate: BulkUnit) -> BulkUnit:
    merged = existing.model_copy(deep=True)

    for number in duplicate.unit_numbers:
        if number not in merged.unit_numbers:
            merged.unit_numbers.append(number)
    merged.unit_count = existing.unit_count + duplicate.unit_count
    for feature in duplicate.features:
        if feature not in merged.features:
            merged.features.append(feature)

    for name in (
        "name",
        "type_name",
        "category",
        "building_name",
        "bedrooms",
        "bathrooms",
        "area",
        "suite_area",
        "balcony_area",
        "price_per_sqft",
        "floor_plan_image",
        "description",
    ):
        if getattr(merged, name) in (None, "") and getattr(duplicate, name) not in (None, ""):
            setattr(merged, name, getattr(duplicate, name))

    if duplicate.orientation and len(duplicate.orientation) > len(merged.orientation or ""):
        merged.orientation = duplicate.orientation

    if merged.price is None:
        merged.price = duplicate.price
    elif duplicate.price is not None and duplicate.price != merged.price:
        merged.price = (merged.price + duplicate.price) / 2

    return merged


def deduplicate_units(units: Sequence[BulkUnit]) -> List[BulkUnit]:
    deduplicated = merge_by_key(units, unit_dedupe_key, merge_bulk_units)
    if len(deduplicated) != len(units):
        logger.info("Deduplicated %d units into %d", len(units), len(deduplicated))
    return deduplicated


def _category_rank(category: str) -> int:
    try:
        return UNIT_CATEGORY_ORDER.index(category)
    except ValueError:
        return len(UNIT_CATEGORY_ORDER)


def sort_units(units: Sequence[CatalogUnit]) -> List[CatalogUnit]:
    """Order units by category (studio first, townhouse last), then type name."""

    return sorted(units, key=lambda unit: (_category_rank(unit.category), unit.type_name))


# Amenities ------------------------------------------------------------------


def deduplicate_amenities(amenities: Iterable[str]) -> List[str]:
    """Drop case-insensitive repeats, keeping the first spelling."""

    seen = set()
    unique: List[str] = []
    for amenity in amenities:
        text = amenity.strip()
        lowered = text.lower()
        if not text or lowered in seen:
            continue
        seen.add(lowered)
        unique.append(text)
    return unique


# Payment plans --------------------------------------------------------------


def payment_plan_total(plan: PaymentPlan) -> float:
    return float(sum(milestone.percentage for milestone in plan.milestones))


def payment_plan_score(plan: PaymentPlan) -> float:
    """Score completeness: milestones, a 100% total and dated milestones."""

    score = 10.0 * len(plan.milestones)
    if abs(payment_plan_total(plan) - 100.0) <= 5.0:
        score += 50.0
    score += 5.0 * sum(1 for milestone in plan.milestones if milestone.date)
    return score


def _plan_signature(plan: PaymentPlan) -> Hashable:
    return tuple(
        (milestone.milestone.strip().lower(), milestone.percentage) for milestone in plan.milestones
    )


def collapse_identical_payment_plans(plans: Iterable[PaymentPlan]) -> List[PaymentPlan]:
    """Keep one plan per distinct milestone schedule."""

    return merge_by_key(plans, _plan_signature, lambda first, _duplicate: first)


def deduplicate_payment_plans(plans: Sequence[PaymentPlan]) -> List[PaymentPlan]:
    """Return the single most complete plan (empty list when there is none)."""

    candidates = [plan for plan in plans if plan.milestones]
    if not candidates:
        return []
    best: Optional[PaymentPlan] = None
    best_score = -1.0
    for plan in candidates:
        score = payment_plan_score(plan)
        if score > best_score:
            best, best_score = plan, score
    if len(candidates) > 1:
        logger.info("Selected payment plan %r out of %d candidates", best.name if best else None, len(candidates))
    return [best] if best is not None else []


# Images ---------------------------------------------------------------------


def dedupe_paths(paths: Iterable[Optional[str]]) -> List[str]:
    unique: List[str] = []
    seen = set()
    for path in paths:
        if not path or path in seen:
            continue
        seen.add(path)
        unique.append(path)
    return unique


__all__ = [
    "UNIT_CATEGORY_ORDER",
    "collapse_identical_payment_plans",
    "dedupe_paths",
    "deduplicate_amenities",
    "deduplicate_payment_plans",
    "deduplicate_units",
    "merge_bulk_units",
    "merge_by_key",
    "payment_plan_score",
    "payment_plan_total",
    "sort_units",
    "unit_dedupe_key",
]
