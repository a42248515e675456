from __future__ import annotations

import asyncio
import logging
import random
from typing import List

import pytest

from brochure_ingest.assignment.registry import PageRegistry, RegistryClosedError
from brochure_ingest.pages.models import AssignmentResult


class CountingNormalizer:
    def __init__(self) -> None:
        self.calls: List[List[str]] = []

    async def __call__(self, amenities: List[str]) -> List[str]:
        self.calls.append(list(amenities))
        return [f"{name} (clean)" for name in amenities]


@pytest.mark.asyncio
async def test_insert_is_idempotent_and_warns_once_per_duplicate(brochure_pages, caplog) -> None:
    registry = PageRegistry()
    assert await registry.insert_pages(brochure_pages) == 12
    before = registry.get_assignment().comparable()

    caplog.clear()
    with caplog.at_level(logging.WARNING, logger="brochure_ingest.assignment.registry"):
        inserted = await registry.insert_pages(brochure_pages[:3])

    assert inserted == 0
    duplicate_records = [record for record in caplog.records if "Duplicate page" in record.getMessage()]
    assert len(duplicate_records) == 3
    assert len(registry.warnings) == 3
    assert registry.get_assignment().comparable() == before


@pytest.mark.asyncio
async def test_result_is_independent_of_arrival_order(brochure_pages) -> None:
    ordered = PageRegistry()
    await ordered.insert_pages(brochure_pages)

    shuffled_pages = list(brochure_pages)
    random.Random(7).shuffle(shuffled_pages)
    shuffled = PageRegistry()
    for start in range(0, len(shuffled_pages), 5):
        await shuffled.insert_pages(shuffled_pages[start : start + 5])

    assert shuffled.get_assignment().comparable() == ordered.get_assignment().comparable()


@pytest.mark.asyncio
async def test_concurrent_inserts_are_serialized(brochure_pages) -> None:
    registry = PageRegistry()
    batches = [brochure_pages[index : index + 2] for index in range(0, 12, 2)]

    counts = await asyncio.gather(*(registry.insert_pages(batch) for batch in batches))

    assert sum(counts) == 12
    result = registry.get_assignment()
    assert result.total_pages == 12
    assert result.boundaries_found == 2


@pytest.mark.asyncio
async def test_listener_receives_each_snapshot(brochure_pages) -> None:
    registry = PageRegistry()
    seen: List[AssignmentResult] = []
    registry.set_change_listener(seen.append)

    await registry.insert_pages(brochure_pages[:6])
    await registry.insert_pages(brochure_pages[6:])
    await registry.insert_pages(brochure_pages[:1])

    assert [snapshot.total_pages for snapshot in seen] == [6, 12]


@pytest.mark.asyncio
async def test_async_listener_failures_do_not_break_inserts(brochure_pages) -> None:
    registry = PageRegistry()
    delivered: List[int] = []

    async def listener(result: AssignmentResult) -> None:
        delivered.append(result.total_pages)
        raise RuntimeError("sink offline")

    registry.set_change_listener(listener)
    assert await registry.insert_pages(brochure_pages) == 12
    await registry.close()

    assert delivered == [12]
    with pytest.raises(RegistryClosedError):
        await registry.insert_pages(brochure_pages)


@pytest.mark.asyncio
async def test_normalizer_runs_once_until_new_pages(brochure_pages, make_page) -> None:
    normalizer = CountingNormalizer()
    registry = PageRegistry(amenity_normalizer=normalizer)
    await registry.insert_pages(brochure_pages)

    first = await registry.aggregate_project_data()
    second = await registry.aggregate_project_data()

    assert len(normalizer.calls) == 1
    assert first.amenities == ["Pool (clean)", "Gym (clean)"]
    assert second.amenities == first.amenities
    assert first.project_info is not None and first.project_info.project_name == "Marina Heights"
    assert len(first.payment_plans) == 1

    await registry.insert_pages([make_page(13, amenities=["Cinema"])])
    assert registry.get_assignment().amenities == ["Pool", "Gym", "Cinema"]

    third = await registry.aggregate_project_data()
    assert len(normalizer.calls) == 2
    assert third.amenities == ["Pool (clean)", "Gym (clean)", "Cinema (clean)"]


@pytest.mark.asyncio
async def test_normalizer_failure_keeps_raw_amenities(brochure_pages) -> None:
    async def broken(amenities: List[str]) -> List[str]:
        raise RuntimeError("model offline")

    registry = PageRegistry(amenity_normalizer=broken)
    await registry.insert_pages(brochure_pages)

    result = await registry.aggregate_project_data()

    assert result.amenities == ["Pool", "Gym"]
    assert registry.normalizer_calls == 1


@pytest.mark.asyncio
async def test_page_queries_and_stats(brochure_pages) -> None:
    registry = PageRegistry()
    await registry.insert_pages(brochure_pages)

    assert [page.page_number for page in registry.anchor_pages()] == [4, 7]
    assert [page.page_number for page in registry.payment_plan_pages()] == [11]
    assert [page.page_number for page in registry.project_info_pages()] == [1, 2]
    assert registry.tower_characteristics_pages() == []
    assert len(registry.pages_for_document("brochure.pdf")) == 12

    stats = registry.stats()
    assert stats["total_pages"] == 12
    assert stats["anchor_pages"] == 2
    assert stats["page_types"]["unit_anchor"] == 2

    registry.reset()
    assert registry.get_assignment().total_pages == 0


@pytest.mark.asyncio
async def test_two_document_brochure_merges_unit_across_documents(make_page, make_image) -> None:
    doc_a = [
        make_page(1, document="a.pdf", page_type="project_cover", images=[make_image("a/cover.jpg", "building_exterior")]),
        make_page(2, document="a.pdf", page_type="section_title", section_start=True),
        make_page(
            3,
            document="a.pdf",
            page_type="unit_anchor",
            unit="A-1B-A.1",
            unit_start=True,
            images=[make_image("a/plan.jpg", "floor_plan"), make_image("a/plan-draft.jpg", "floor_plan", should_use=False)],
        ),
        make_page(4, document="a.pdf", page_type="unit_interior", images=[make_image("a/living.jpg", "unit_interior_living")]),
        make_page(5, document="a.pdf", page_type="section_title", section_start=True),
        make_page(6, document="a.pdf", page_type="amenities_list", amenities=["Pool", "Gym"]),
    ]
    doc_b = [
        make_page(
            1,
            document="b.pdf",
            page_type="unit_anchor",
            unit="A-1B-A.1",
            unit_start=True,
            images=[make_image("b/render.jpg", "unit_exterior")],
        ),
        make_page(
            2,
            document="b.pdf",
            page_type="payment_plan",
            payment_plan={
                "name": "20/80",
                "milestones": [
                    {"milestone": "On booking", "percentage": 20},
                    {"milestone": "On handover", "percentage": 80},
                ],
            },
        ),
    ]
    registry = PageRegistry()
    await registry.insert_pages(doc_b)
    await registry.insert_pages(doc_a)

    result = registry.get_assignment()

    assert [unit.unit_type_name for unit in result.units] == ["A-1B-A.1"]
    unit = result.units[0]
    assert len(unit.all_images) == 3
    assert [image.image_path for image in unit.floor_plan_images] == ["a/plan.jpg"]
    assert [image.image_path for image in unit.interior_images] == ["a/living.jpg"]
    assert "a/plan-draft.jpg" not in [image.image_path for image in unit.all_images]
    assert sorted(unit.source_documents) == ["a.pdf", "b.pdf"]
    assert [image.image_path for image in unit.rendering_images] == ["b/render.jpg"]
    assert "a/cover.jpg" in [image.image_path for image in result.project_images.cover_images]
    assert result.amenities == ["Pool", "Gym"]
    assert len(result.payment_plans) == 1
    assert sum(milestone.percentage for milestone in result.payment_plans[0].milestones) == 100
    assert result.total_documents == 2
