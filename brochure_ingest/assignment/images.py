"""Attribute page images to the unit boundaries that contain them."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from ..pages.models import (
    ImageCategory,
    PageRange,
    PageRecord,
    UnitBoundary,
    UnitImageAssignment,
)

logger = logging.getLogger(__name__)

INTERIOR_CATEGORIES = frozenset(
    {
        ImageCategory.UNIT_INTERIOR_LIVING,
        ImageCategory.UNIT_INTERIOR_BEDROOM,
        ImageCategory.UNIT_INTERIOR_KITCHEN,
        ImageCategory.UNIT_INTERIOR_BATHROOM,
    }
)


def assign_images_by_boundaries(
    pages: Sequence[PageRecord],
    boundaries: Sequence[UnitBoundary],
) -> List[UnitImageAssignment]:
    """Return one image assignment per boundary, in boundary order."""

    pages_by_document: Dict[str, List[PageRecord]] = defaultdict(list)
    for page in pages:
        pages_by_document[page.source_document].append(page)

    assignments: List[UnitImageAssignment] = []
    for boundary in boundaries:
        assignment = UnitImageAssignment(
            unit_type_name=boundary.unit_type_name,
            source_documents=list(boundary.source_documents),
            page_range=PageRange(start=boundary.start_page, end=boundary.end_page),
        )

        for document in boundary.source_documents:
            for page in pages_by_document.get(document, []):
                if not boundary.start_page <= page.page_number <= boundary.end_page:
                    continue
                for image in page.images:
                    if image.excluded:
                        continue
                    if image.category is ImageCategory.FLOOR_PLAN:
                        assignment.floor_plan_images.append(image)
                    elif image.category is ImageCategory.UNIT_EXTERIOR:
                        assignment.rendering_images.append(image)
                    elif image.category in INTERIOR_CATEGORIES:
                        assignment.interior_images.append(image)
                    elif image.category is ImageCategory.UNIT_BALCONY:
                        assignment.balcony_images.append(image)
                    else:
                        logger.debug(
                            "Unexpected %s image %s inside unit %s (%s page %s)",
                            image.category.value,
                            image.image_path,
                            boundary.unit_type_name,
                            page.source_document,
                            page.page_number,
                        )
                        continue
                    assignment.all_images.append(image)

        assignments.append(assignment)

    return assignments


__all__ = ["INTERIOR_CATEGORIES", "assign_images_by_boundaries"]
