from __future__ import annotations

from brochure_ingest.assignment.boundaries import scan_unit_boundaries
from brochure_ingest.assignment.images import assign_images_by_boundaries
from brochure_ingest.assignment.merge import merge_same_name_units
from brochure_ingest.pages.models import PageRange


def _paths(images):
    return [image.image_path for image in images]


def test_images_are_routed_by_category(brochure_pages) -> None:
    boundaries = scan_unit_boundaries(brochure_pages)
    first, second = assign_images_by_boundaries(brochure_pages, boundaries)

    assert first.unit_type_name == "A-1B-A.1"
    assert _paths(first.floor_plan_images) == ["img/a1-plan.jpg"]
    assert _paths(first.rendering_images) == ["img/a1-render.jpg"]
    assert _paths(first.interior_images) == ["img/a1-living.jpg"]
    assert first.page_range == PageRange(start=4, end=6)

    assert _paths(second.floor_plan_images) == ["img/b2-plan.jpg"]
    assert _paths(second.balcony_images) == ["img/b2-balcony.jpg"]


def test_rejected_images_are_never_assigned(brochure_pages) -> None:
    boundaries = scan_unit_boundaries(brochure_pages)
    assignments = assign_images_by_boundaries(brochure_pages, boundaries)

    every_path = [path for unit in assignments for path in _paths(unit.all_images)]
    assert "img/a1-rejected.jpg" not in every_path


def test_unexpected_categories_stay_out_of_units(make_page, make_image) -> None:
    pages = [
        make_page(1, unit="A-1B-A.1", unit_start=True, images=[make_image("plan.jpg", "floor_plan")]),
        make_page(2, images=[make_image("icon.png", "icon")]),
    ]

    (unit,) = assign_images_by_boundaries(pages, scan_unit_boundaries(pages))

    assert _paths(unit.all_images) == ["plan.jpg"]


def test_same_name_units_merge_across_documents(make_page, make_image) -> None:
    pages = [
        make_page(3, document="a.pdf", unit="C-1B-A.1", unit_start=True, images=[make_image("a-plan.jpg", "floor_plan")]),
        make_page(4, document="a.pdf", images=[make_image("a-living.jpg", "unit_interior_living")]),
        make_page(8, document="b.pdf", unit="c-1b-a.1", unit_start=True, images=[make_image("b-plan.jpg", "floor_plan")]),
    ]

    assignments = assign_images_by_boundaries(pages, scan_unit_boundaries(pages))
    merged = merge_same_name_units(assignments)

    assert len(merged) == 1
    unit = merged[0]
    assert unit.unit_type_name == "C-1B-A.1"
    assert _paths(unit.floor_plan_images) == ["a-plan.jpg", "b-plan.jpg"]
    assert _paths(unit.interior_images) == ["a-living.jpg"]
    assert unit.source_documents == ["a.pdf", "b.pdf"]
    assert unit.page_range == PageRange(start=3, end=8)


def test_distinct_units_keep_first_seen_order(brochure_pages) -> None:
    assignments = assign_images_by_boundaries(brochure_pages, scan_unit_boundaries(brochure_pages))
    merged = merge_same_name_units(assignments)

    assert [unit.unit_type_name for unit in merged] == ["A-1B-A.1", "B-2BM-A.1"]
