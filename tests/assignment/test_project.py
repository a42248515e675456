from __future__ import annotations

from brochure_ingest.assignment.boundaries import scan_unit_boundaries
from brochure_ingest.assignment.project import (
    collect_payment_plans,
    collect_raw_amenities,
    extract_project_images,
    merge_project_info,
)


def _paths(images):
    return [image.image_path for image in images]


def test_project_images_are_bucketed(brochure_pages) -> None:
    images = extract_project_images(brochure_pages, scan_unit_boundaries(brochure_pages))

    assert _paths(images.cover_images) == ["img/cover.jpg", "img/logo.png"]
    assert _paths(images.aerial_images) == ["img/aerial.jpg"]
    assert _paths(images.location_maps) == ["img/map.jpg"]
    assert _paths(images.amenity_images) == ["img/pool.jpg"]
    assert _paths(images.rendering_images) == ["img/section.jpg", "img/a1-render.jpg"]
    assert "img/a1-plan.jpg" not in _paths(images.all_images())


def test_project_images_skip_rejected_and_duplicates(make_page, make_image) -> None:
    pages = [
        make_page(1, images=[make_image("hero.jpg", "building_exterior"), make_image("bad.jpg", "building_exterior", should_use=False)]),
        make_page(2, images=[make_image("hero.jpg", "building_exterior")]),
    ]

    images = extract_project_images(pages, [])

    assert _paths(images.rendering_images) == ["hero.jpg"]


def test_coverage_is_per_document(make_page, make_image) -> None:
    pages = [
        make_page(2, document="a.pdf", unit="A-1B-A.1", unit_start=True, images=[make_image("a-plan.jpg", "floor_plan")]),
        make_page(2, document="b.pdf", images=[make_image("b-plan.jpg", "floor_plan"), make_image("b-map.jpg", "location_map")]),
    ]

    images = extract_project_images(pages, scan_unit_boundaries(pages))

    assert _paths(images.location_maps) == ["b-map.jpg"]
    assert "a-plan.jpg" not in _paths(images.all_images())


def test_project_facts(brochure_pages, make_page) -> None:
    info = merge_project_info(brochure_pages)
    assert info is not None
    assert info.project_name == "Marina Heights"
    assert info.developer == "Acme Developments"
    assert info.area == "Dubai Marina"
    assert merge_project_info([make_page(1)]) is None

    assert collect_raw_amenities(brochure_pages) == ["Pool", "Gym"]

    (plan,) = collect_payment_plans(brochure_pages)
    assert plan.name == "60/40 Plan"
    assert plan.total_percentage == 100.0
    assert plan.page_number == 11


def test_identical_payment_plans_collapse(make_page) -> None:
    schedule = {"milestones": [{"milestone": "Booking", "percentage": 50}, {"milestone": "Handover", "percentage": 50}]}
    pages = [
        make_page(3, payment_plan=schedule),
        make_page(9, payment_plan=schedule),
    ]

    plans = collect_payment_plans(pages)

    assert len(plans) == 1
    assert plans[0].page_number == 3
