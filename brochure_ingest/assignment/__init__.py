"""Incremental unit and project assignment over classified brochure pages."""

from .boundaries import is_generic_unit_name, scan_unit_boundaries
from .images import assign_images_by_boundaries
from .merge import merge_same_name_units
from .project import (
    collect_payment_plans,
    collect_raw_amenities,
    extract_project_images,
    merge_project_info,
)
from .registry import PageRegistry, ProjectFactsCache, RegistryClosedError

__all__ = [
    "PageRegistry",
    "ProjectFactsCache",
    "RegistryClosedError",
    "assign_images_by_boundaries",
    "collect_payment_plans",
    "collect_raw_amenities",
    "extract_project_images",
    "is_generic_unit_name",
    "merge_project_info",
    "merge_same_name_units",
    "scan_unit_boundaries",
]
