"""Final aggregation: reconcile boundary units with bulk-extracted specs."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from ..agents.description import ProjectSummary, ValueRange
from ..assignment.dedupe import (
    dedupe_paths,
    deduplicate_amenities,
    deduplicate_payment_plans,
    deduplicate_units,
    sort_units,
)
from ..assignment.merge import normalize_unit_name
from ..catalog import BulkExtraction, BulkUnit, CatalogUnit, ProjectCatalog
from ..pages.models import (
    AssignmentResult,
    PageImage,
    PageRecord,
    PaymentPlan,
    UnitImageAssignment,
    UnitSpecs,
)

logger = logging.getLogger(__name__)

_PROJECT_FIELDS = (
    "project_name",
    "developer",
    "address",
    "area",
    "launch_date",
    "completion_date",
    "handover_date",
    "construction_progress",
)


def derive_building_name(unit_type_name: str) -> Optional[str]:
    """Infer the tower or building from a coded unit name, if it carries one."""

    if not unit_type_name:
        return None
    name = unit_type_name.upper()

    match = re.match(r"^([A-Z])-", name)
    if match:
        return f"Tower {match.group(1)}"
    match = re.search(r"TOWER[-\s]*([A-Z])", name)
    if match:
        return f"Tower {match.group(1)}"
    match = re.search(r"BUILDING[-\s]*(\d+)", name)
    if match:
        return f"Building {match.group(1)}"
    match = re.match(r"^([A-Z])(\d)", name)
    if match:
        return f"Tower {match.group(1)}"
    return None


def derive_unit_category(bedrooms: Optional[float], type_name: str = "") -> str:
    lowered = (type_name or "").lower()
    for label in ("Penthouse", "Duplex", "Townhouse"):
        if label.lower() in lowered:
            return label
    if bedrooms is None:
        return "Studio" if "studio" in lowered else "Unknown"
    count = int(bedrooms)
    if count <= 0:
        return "Studio"
    if count >= 5:
        return "5BR"
    return f"{count}BR"


def estimate_bathrooms(bedrooms: int) -> int:
    """Studio and one-bedroom units get one bathroom, larger units up to three."""

    if bedrooms <= 1:
        return 1
    if bedrooms == 2:
        return 2
    return min(bedrooms, 3)


def calculate_area_range(units: Sequence[CatalogUnit]) -> Optional[ValueRange]:
    areas = [unit.area for unit in units if unit.area and unit.area > 0]
    if not areas:
        return None
    return ValueRange(min=min(areas), max=max(areas))


def calculate_price_range(units: Sequence[CatalogUnit]) -> Optional[ValueRange]:
    prices = [unit.price for unit in units if unit.price and unit.price > 0]
    if not prices:
        return None
    return ValueRange(min=min(prices), max=max(prices))


def extract_payment_plan_highlight(plans: Sequence[PaymentPlan]) -> Optional[str]:
    """Summarize the first plan as ``"<construction>/<handover> payment plan"``."""

    if not plans:
        return None
    plan = plans[0]
    if plan.name:
        match = re.search(r"(\d+)\s*/\s*(\d+)", plan.name)
        if match:
            return f"{match.group(1)}/{match.group(2)} payment plan"

    during_construction = sum(
        milestone.percentage
        for milestone in plan.milestones
        if milestone.stage and "construction" in milestone.stage.lower()
    )
    on_handover = 100 - during_construction
    if during_construction > 0 and on_handover > 0:
        return f"{_format_percent(during_construction)}/{_format_percent(on_handover)} payment plan"
    return "Flexible payment plan available"


def _format_percent(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


def match_bulk_unit(name: str, bulk_units: Sequence[BulkUnit]) -> Tuple[Optional[BulkUnit], List[BulkUnit]]:
    """Return the chosen bulk unit for ``name`` and every candidate considered.

    Exact case-insensitive matches win. Otherwise substring matches in either
    direction are collected and the first one in bulk order is used.
    """

    target = normalize_unit_name(name)
    if not target:
        return None, []

    for unit in bulk_units:
        if normalize_unit_name(unit.display_name) == target:
            return unit, [unit]

    candidates = []
    for unit in bulk_units:
        candidate = normalize_unit_name(unit.display_name)
        if candidate and (candidate in target or target in candidate):
            candidates.append(unit)
    return (candidates[0] if candidates else None), candidates


def _anchor_unit_info(name: str, anchor_pages: Sequence[PageRecord]) -> Tuple[Optional[PageRecord], UnitSpecs]:
    target = normalize_unit_name(name)
    for page in anchor_pages:
        if page.unit_info is not None and normalize_unit_name(page.unit_name) == target:
            return page, page.unit_info.specs or UnitSpecs()
    return None, UnitSpecs()


def _paths(images: Sequence[PageImage]) -> List[str]:
    return dedupe_paths(image.image_path for image in images)


def build_catalog_unit(
    unit: UnitImageAssignment,
    bulk_units: Sequence[BulkUnit],
    anchor_pages: Sequence[PageRecord],
    warnings: List[str],
) -> CatalogUnit:
    name = unit.unit_type_name
    matched, candidates = match_bulk_unit(name, bulk_units)
    if len(candidates) > 1:
        message = (
            f"Unit {name} matched {len(candidates)} bulk units "
            f"({', '.join(candidate.display_name for candidate in candidates)}); using {matched.display_name if matched else None}"
        )
        logger.warning(message)
        warnings.append(message)

    anchor_page, anchor_specs = _anchor_unit_info(name, anchor_pages)
    anchor_info = anchor_page.unit_info if anchor_page is not None else None

    if matched is not None:
        bedrooms_raw = matched.bedrooms if matched.bedrooms is not None else anchor_specs.bedrooms
        bathrooms_raw = matched.bathrooms if matched.bathrooms is not None else anchor_specs.bathrooms
        area = matched.area if matched.area is not None else anchor_specs.area
        suite_area = matched.suite_area if matched.suite_area is not None else anchor_specs.suite_area
        balcony_area = matched.balcony_area if matched.balcony_area is not None else anchor_specs.balcony_area
        price = matched.price if matched.price is not None else anchor_specs.price
        price_per_sqft = matched.price_per_sqft
        features = list(matched.features) or (list(anchor_info.features) if anchor_info else [])
        description = matched.description or (anchor_info.description if anchor_info else None)
        category_hint = matched.category
        building_name = matched.building_name or derive_building_name(name)
        orientation = matched.orientation
    else:
        message = f"No bulk unit matched {name}; using anchor page specs"
        logger.warning(message)
        warnings.append(message)
        bedrooms_raw = anchor_specs.bedrooms
        bathrooms_raw = anchor_specs.bathrooms
        area = anchor_specs.area
        suite_area = anchor_specs.suite_area
        balcony_area = anchor_specs.balcony_area
        price = anchor_specs.price
        price_per_sqft = anchor_specs.price_per_sqft
        features = list(anchor_info.features) if anchor_info else []
        description = anchor_info.description if anchor_info else None
        category_hint = anchor_info.unit_category if anchor_info else None
        building_name = derive_building_name(name)
        orientation = None

    bedrooms = int(bedrooms_raw or 0)
    bathrooms = int(bathrooms_raw or 0)
    if bathrooms <= 0:
        bathrooms = estimate_bathrooms(bedrooms)
        logger.warning("Estimated %d bathroom(s) for %s from %d bedroom(s)", bathrooms, name, bedrooms)

    if not area:
        source = f"{anchor_page.source_document} p.{anchor_page.page_number}" if anchor_page else "none"
        message = (
            f"Unit {name} has zero area (source page: {source}, "
            f"specs: {anchor_specs.model_dump(exclude_none=True)}, "
            f"has_detailed_specs: {anchor_info.has_detailed_specs if anchor_info else False})"
        )
        logger.warning(message)
        warnings.append(message)
        area = 0.0

    category = category_hint or derive_unit_category(bedrooms_raw, name)
    floor_plans = _paths(unit.floor_plan_images)
    floor_plan_image = (matched.floor_plan_image if matched is not None else None) or (
        floor_plans[0] if floor_plans else None
    )

    return CatalogUnit(
        name=name,
        type_name=name,
        category=category,
        building_name=building_name,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        area=float(area),
        suite_area=suite_area,
        balcony_area=balcony_area,
        price=price,
        price_per_sqft=price_per_sqft,
        orientation=orientation,
        features=features,
        description=description,
        floor_plan_image=floor_plan_image,
        floor_plan_images=floor_plans,
        rendering_images=_paths(unit.rendering_images),
        interior_images=_paths(unit.interior_images),
        balcony_images=_paths(unit.balcony_images),
        source_documents=list(unit.source_documents),
        matched_bulk_unit=matched is not None,
    )


def build_catalog_units(
    assignment: AssignmentResult,
    bulk_units: Sequence[BulkUnit],
    anchor_pages: Sequence[PageRecord],
    warnings: Optional[List[str]] = None,
) -> List[CatalogUnit]:
    """Merge every boundary unit with its bulk-extracted specification."""

    sink = warnings if warnings is not None else []
    reconciled = deduplicate_units(bulk_units)
    units = [build_catalog_unit(unit, reconciled, anchor_pages, sink) for unit in assignment.units]
    return sort_units(units)


def assemble_project_catalog(
    assignment: AssignmentResult,
    bulk: BulkExtraction,
    anchor_pages: Sequence[PageRecord],
) -> ProjectCatalog:
    """Assemble the final catalog; the description is filled in separately."""

    warnings: List[str] = []
    units = build_catalog_units(assignment, bulk.units, anchor_pages, warnings)

    catalog = ProjectCatalog(units=units, warnings=warnings)
    info = assignment.project_info
    for name in _PROJECT_FIELDS:
        value = getattr(info, name, None) if info is not None else None
        if value in (None, ""):
            value = getattr(bulk, name)
        setattr(catalog, name, value)

    descriptions = [text for text in ((info.description if info else None), bulk.description) if text]
    catalog.description = max(descriptions, key=len) if descriptions else None

    catalog.amenities = list(assignment.amenities) or deduplicate_amenities(bulk.amenities)
    catalog.payment_plans = deduplicate_payment_plans([*assignment.payment_plans, *bulk.payment_plans])
    catalog.payment_plan_highlight = extract_payment_plan_highlight(catalog.payment_plans)

    area_range = calculate_area_range(units)
    if area_range is not None:
        catalog.min_area, catalog.max_area = area_range.min, area_range.max
    price_range = calculate_price_range(units)
    if price_range is not None:
        catalog.min_price, catalog.max_price = price_range.min, price_range.max

    images = assignment.project_images
    catalog.cover_images = _paths(images.cover_images)
    catalog.aerial_images = _paths(images.aerial_images)
    catalog.location_maps = _paths(images.location_maps)
    catalog.master_plan_images = _paths(images.master_plan_images)
    catalog.amenity_images = _paths(images.amenity_images)
    catalog.rendering_images = _paths(images.rendering_images)
    catalog.gallery_images = dedupe_paths([*_paths(images.all_images()), *bulk.image_paths])
    return catalog


def build_project_summary(catalog: ProjectCatalog) -> ProjectSummary:
    categories: List[str] = []
    for unit in catalog.units:
        if unit.category not in categories:
            categories.append(unit.category)

    summary = ProjectSummary(
        project_name=catalog.project_name,
        developer=catalog.developer,
        area=catalog.area,
        address=catalog.address,
        launch_date=catalog.launch_date,
        completion_date=catalog.completion_date,
        handover_date=catalog.handover_date,
        construction_progress=catalog.construction_progress,
        total_units=len(catalog.units),
        unit_categories=categories,
        amenities=list(catalog.amenities),
        has_payment_plan=bool(catalog.payment_plans),
        payment_plan_highlight=catalog.payment_plan_highlight,
    )
    if catalog.min_area is not None and catalog.max_area is not None:
        summary.area_range = ValueRange(min=catalog.min_area, max=catalog.max_area)
    if catalog.min_price is not None and catalog.max_price is not None:
        summary.price_range = ValueRange(min=catalog.min_price, max=catalog.max_price)
    return summary


def chunk_progress(total_pages: int, total_chunks: int, pages_per_chunk: int) -> float:
    """Map extracted pages onto the 10-85% band reserved for chunk processing."""

    expected = max(total_chunks * max(pages_per_chunk, 1), 1)
    return 10.0 + min(total_pages / expected, 1.0) * 75.0


__all__ = [
    "assemble_project_catalog",
    "build_catalog_unit",
    "build_catalog_units",
    "build_project_summary",
    "calculate_area_range",
    "calculate_price_range",
    "chunk_progress",
    "derive_building_name",
    "derive_unit_category",
    "estimate_bathrooms",
    "extract_payment_plan_highlight",
    "match_bulk_unit",
]
