"""Project-level galleries and facts derived from the full page set."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ..pages.models import (
    ImageCategory,
    PageImage,
    PageRecord,
    PageType,
    PaymentPlan,
    ProjectImages,
    ProjectInfo,
    UnitBoundary,
)
from .dedupe import collapse_identical_payment_plans, deduplicate_amenities, payment_plan_total

logger = logging.getLogger(__name__)

AMENITY_CATEGORIES = frozenset(
    {
        ImageCategory.AMENITY_POOL,
        ImageCategory.AMENITY_GYM,
        ImageCategory.AMENITY_GARDEN,
        ImageCategory.AMENITY_LOUNGE,
        ImageCategory.AMENITY_OTHER,
    }
)

RENDERING_CATEGORIES = frozenset(
    {
        ImageCategory.BUILDING_EXTERIOR,
        ImageCategory.BUILDING_ENTRANCE,
        ImageCategory.DIAGRAM,
        ImageCategory.UNKNOWN,
        ImageCategory.UNIT_EXTERIOR,
    }
)

PROJECT_LEVEL_CATEGORIES = frozenset(
    {
        ImageCategory.BUILDING_AERIAL,
        ImageCategory.LOCATION_MAP,
        ImageCategory.MASTER_PLAN,
        ImageCategory.LOGO,
        ImageCategory.ICON,
        *AMENITY_CATEGORIES,
        *RENDERING_CATEGORIES,
    }
)

PROJECT_INFO_PAGE_TYPES = frozenset(
    {PageType.PROJECT_COVER, PageType.PROJECT_OVERVIEW, PageType.PROJECT_SUMMARY}
)


def _covered_pages(boundaries: Sequence[UnitBoundary]) -> Dict[str, List[Tuple[int, int]]]:
    covered: Dict[str, List[Tuple[int, int]]] = defaultdict(list)
    for boundary in boundaries:
        for document in boundary.source_documents:
            covered[document].append((boundary.start_page, boundary.end_page))
    return covered


def _is_covered(page: PageRecord, covered: Dict[str, List[Tuple[int, int]]]) -> bool:
    return any(start <= page.page_number <= end for start, end in covered.get(page.source_document, []))


def extract_project_images(
    pages: Sequence[PageRecord],
    boundaries: Sequence[UnitBoundary],
) -> ProjectImages:
    """Collect and bucket images that describe the project rather than a unit.

    Candidates are images on pages outside every boundary plus any image whose
    category is project-level, wherever it sits. Explicitly rejected images
    are dropped and the rest are de-duplicated by path before bucketing.
    """

    covered = _covered_pages(boundaries)
    candidates: List[Tuple[PageImage, PageType]] = []
    seen_paths = set()

    for page in pages:
        outside = not _is_covered(page, covered)
        for image in page.images:
            if image.excluded:
                continue
            if not outside and image.category not in PROJECT_LEVEL_CATEGORIES:
                continue
            if image.image_path in seen_paths:
                continue
            seen_paths.add(image.image_path)
            candidates.append((image, page.page_type))

    result = ProjectImages()
    for image, page_type in candidates:
        category = image.category
        if page_type is PageType.PROJECT_COVER or category is ImageCategory.LOGO:
            result.cover_images.append(image)
        elif category is ImageCategory.BUILDING_AERIAL:
            result.aerial_images.append(image)
        elif category is ImageCategory.LOCATION_MAP:
            result.location_maps.append(image)
        elif category is ImageCategory.MASTER_PLAN:
            result.master_plan_images.append(image)
        elif category in AMENITY_CATEGORIES:
            result.amenity_images.append(image)
        elif category in RENDERING_CATEGORIES:
            result.rendering_images.append(image)

    return result


def collect_raw_amenities(pages: Sequence[PageRecord]) -> List[str]:
    """Return amenity names from every page, de-duplicated case-insensitively."""

    names: List[str] = []
    for page in pages:
        if page.amenities_data is not None:
            names.extend(page.amenities_data.amenities)
    return deduplicate_amenities(names)


def merge_project_info(pages: Sequence[PageRecord]) -> Optional[ProjectInfo]:
    """Merge project info across pages; the longest non-empty text wins per field."""

    merged = ProjectInfo()
    found = False
    for page in pages:
        data = page.project_info_data
        if data is None:
            continue
        found = True
        for name in ProjectInfo.model_fields:
            incoming = getattr(data, name, None)
            if incoming in (None, ""):
                continue
            current = getattr(merged, name)
            if current in (None, ""):
                setattr(merged, name, incoming)
            elif isinstance(incoming, str) and isinstance(current, str) and len(incoming) > len(current):
                setattr(merged, name, incoming)
    return merged if found else None


def collect_payment_plans(pages: Sequence[PageRecord]) -> List[PaymentPlan]:
    """Build one plan per page carrying milestones, collapsing identical schedules."""

    plans: List[PaymentPlan] = []
    for page in pages:
        data = page.payment_plan_data
        if data is None or not data.milestones:
            continue
        plan = PaymentPlan(
            name=data.name,
            milestones=list(data.milestones),
            source_document=page.source_document,
            page_number=page.page_number,
        )
        plan.total_percentage = payment_plan_total(plan)
        if abs(plan.total_percentage - 100.0) > 5.0:
            logger.debug(
                "Payment plan on %s page %s totals %.1f%%",
                page.source_document,
                page.page_number,
                plan.total_percentage,
            )
        plans.append(plan)
    return collapse_identical_payment_plans(plans)


__all__ = [
    "AMENITY_CATEGORIES",
    "PROJECT_INFO_PAGE_TYPES",
    "PROJECT_LEVEL_CATEGORIES",
    "RENDERING_CATEGORIES",
    "collect_payment_plans",
    "collect_raw_amenities",
    "extract_project_images",
    "merge_project_info",
]
