"""Page-level records, chunk planning and record storage."""

from .models import (
    AssignmentResult,
    ImageCategory,
    PageImage,
    PageRecord,
    PageType,
    PaymentPlan,
    ProjectImages,
    ProjectInfo,
    UnitBoundary,
    UnitImageAssignment,
)

__all__ = [
    "AssignmentResult",
    "ImageCategory",
    "PageImage",
    "PageRecord",
    "PageType",
    "PaymentPlan",
    "ProjectImages",
    "ProjectInfo",
    "UnitBoundary",
    "UnitImageAssignment",
]
