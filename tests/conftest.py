from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import pytest

from brochure_ingest.pages.models import PageRecord


def build_image(path: str, category: str = "unknown", should_use: Optional[bool] = None) -> Dict[str, Any]:
    image: Dict[str, Any] = {"imageId": path, "imagePath": path, "category": category, "confidence": 0.9}
    if should_use is not None:
        image["shouldUse"] = should_use
    return image


def build_page(
    page_number: int,
    *,
    document: str = "brochure.pdf",
    page_type: str = "general_text",
    unit: Optional[str] = None,
    unit_start: bool = False,
    unit_end: bool = False,
    section_start: bool = False,
    images: Optional[List[Dict[str, Any]]] = None,
    specs: Optional[Dict[str, Any]] = None,
    amenities: Optional[List[str]] = None,
    project_info: Optional[Dict[str, Any]] = None,
    payment_plan: Optional[Dict[str, Any]] = None,
) -> PageRecord:
    payload: Dict[str, Any] = {
        "pageNumber": page_number,
        "sourceDocument": document,
        "pageType": page_type,
        "confidence": 0.95,
        "images": images or [],
        "boundaryMarkers": {
            "isUnitStart": unit_start,
            "isUnitEnd": unit_end,
            "isSectionStart": section_start,
        },
    }
    if unit is not None:
        payload["unitInfo"] = {"unitTypeName": unit, "specs": specs or {}}
    if amenities is not None:
        payload["amenitiesData"] = {"amenities": amenities}
    if project_info is not None:
        payload["projectInfoData"] = project_info
    if payment_plan is not None:
        payload["paymentPlanData"] = payment_plan
    return PageRecord.model_validate(payload)


@pytest.fixture
def make_page() -> Callable[..., PageRecord]:
    return build_page


@pytest.fixture
def make_image() -> Callable[..., Dict[str, Any]]:
    return build_image


@pytest.fixture
def brochure_pages() -> List[PageRecord]:
    """Twelve-page brochure: cover, overview, two units, amenities, payment plan."""

    return [
        build_page(
            1,
            page_type="project_cover",
            images=[build_image("img/cover.jpg", "building_exterior")],
            project_info={"projectName": "Marina Heights", "developer": "Acme Developments"},
        ),
        build_page(
            2,
            page_type="project_overview",
            images=[build_image("img/aerial.jpg", "building_aerial")],
            project_info={"projectName": "Marina Heights", "area": "Dubai Marina"},
        ),
        build_page(
            3,
            page_type="section_title",
            section_start=True,
            images=[build_image("img/section.jpg", "unknown")],
        ),
        build_page(
            4,
            page_type="unit_anchor",
            unit="A-1B-A.1",
            unit_start=True,
            images=[build_image("img/a1-plan.jpg", "floor_plan")],
            specs={"bedrooms": 1, "bathrooms": 1, "area": "750 sqft"},
        ),
        build_page(
            5,
            page_type="unit_rendering",
            images=[build_image("img/a1-render.jpg", "unit_exterior")],
        ),
        build_page(
            6,
            page_type="unit_interior",
            images=[
                build_image("img/a1-living.jpg", "unit_interior_living"),
                build_image("img/a1-rejected.jpg", "unit_interior_bedroom", should_use=False),
            ],
        ),
        build_page(
            7,
            page_type="unit_anchor",
            unit="B-2BM-A.1",
            unit_start=True,
            images=[build_image("img/b2-plan.jpg", "floor_plan")],
            specs={"bedrooms": 2, "area": 1200},
        ),
        build_page(
            8,
            page_type="unit_detail",
            unit_end=True,
            images=[build_image("img/b2-balcony.jpg", "unit_balcony")],
        ),
        build_page(
            9,
            page_type="amenities_images",
            section_start=True,
            images=[build_image("img/pool.jpg", "amenity_pool")],
            amenities=["Pool", "Gym"],
        ),
        build_page(
            10,
            page_type="project_location_map",
            images=[build_image("img/map.jpg", "location_map")],
        ),
        build_page(
            11,
            page_type="payment_plan",
            payment_plan={
                "name": "60/40 Plan",
                "milestones": [
                    {"milestone": "Booking", "percentage": 20, "stage": "construction"},
                    {"milestone": "Construction", "percentage": 40, "stage": "construction"},
                    {"milestone": "Handover", "percentage": 40, "stage": "handover"},
                ],
            },
        ),
        build_page(12, page_type="back_cover", images=[build_image("img/logo.png", "logo")]),
    ]
