from __future__ import annotations

from brochure_ingest.assignment.dedupe import (
    deduplicate_amenities,
    deduplicate_payment_plans,
    deduplicate_units,
    payment_plan_score,
    unit_dedupe_key,
)
from brochure_ingest.catalog import BulkUnit
from brochure_ingest.pages.models import PaymentMilestone, PaymentPlan


def test_unit_dedupe_key_rounds_area_down() -> None:
    unit = BulkUnit(type_name="Type A Deluxe", bedrooms=2, area=1238.5)
    assert unit_dedupe_key(unit) == "2BR_type_a_deluxe_1230sqft"


def test_duplicate_units_are_merged() -> None:
    units = [
        BulkUnit(type_name="A-1B-A.1", bedrooms=1, area=752, unit_numbers=["101"], unit_count=1, price=1_000_000, orientation="N"),
        BulkUnit(type_name="A-1B-A.1", bedrooms=1, area=755, unit_numbers=["102", "101"], unit_count=2, price=1_200_000, orientation="North-East", bathrooms=1),
        BulkUnit(type_name="B-2BM-A.1", bedrooms=2, area=1200),
    ]

    merged = deduplicate_units(units)

    assert len(merged) == 2
    first = merged[0]
    assert first.unit_numbers == ["101", "102"]
    assert first.unit_count == 3
    assert first.price == 1_100_000
    assert first.orientation == "North-East"
    assert first.bathrooms == 1
    assert units[0].unit_numbers == ["101"]


def test_amenities_dedupe_case_insensitively() -> None:
    assert deduplicate_amenities(["Pool", "pool ", "Gym", "", "GYM"]) == ["Pool", "Gym"]


def test_best_payment_plan_wins() -> None:
    partial = PaymentPlan(
        name="Partial",
        milestones=[PaymentMilestone(milestone="Booking", percentage=10)],
    )
    complete = PaymentPlan(
        name="Complete",
        milestones=[
            PaymentMilestone(milestone="Booking", percentage=20, date="2025-01"),
            PaymentMilestone(milestone="Handover", percentage=80),
        ],
    )

    assert payment_plan_score(complete) == 75.0
    assert deduplicate_payment_plans([partial, complete]) == [complete]
    assert deduplicate_payment_plans([PaymentPlan(name="Empty")]) == []
