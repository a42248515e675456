"""Collapse unit assignments that share a name across source documents."""

from __future__ import annotations

from typing import Dict, List, Sequence

from ..pages.models import PageRange, UnitImageAssignment


def normalize_unit_name(name: str) -> str:
    return (name or "").strip().lower()


def merge_same_name_units(assignments: Sequence[UnitImageAssignment]) -> List[UnitImageAssignment]:
    """Merge assignments whose names match case-insensitively.

    Groups keep first-seen order and the first member's spelling. Image lists
    are concatenated in group order, source documents are unioned and the
    page range spans every member.
    """

    groups: Dict[str, List[UnitImageAssignment]] = {}
    for assignment in assignments:
        groups.setdefault(normalize_unit_name(assignment.unit_type_name), []).append(assignment)

    merged: List[UnitImageAssignment] = []
    for members in groups.values():
        if len(members) == 1:
            merged.append(members[0])
            continue

        first = members[0]
        combined = UnitImageAssignment(unit_type_name=first.unit_type_name)
        sources = set()
        ranges = []
        for member in members:
            combined.floor_plan_images.extend(member.floor_plan_images)
            combined.rendering_images.extend(member.rendering_images)
            combined.interior_images.extend(member.interior_images)
            combined.balcony_images.extend(member.balcony_images)
            combined.all_images.extend(member.all_images)
            sources.update(member.source_documents)
            if member.page_range is not None:
                ranges.append(member.page_range)

        combined.source_documents = sorted(sources)
        if ranges:
            combined.page_range = PageRange(
                start=min(item.start for item in ranges),
                end=max(item.end for item in ranges),
            )
        merged.append(combined)

    return merged


__all__ = ["merge_same_name_units", "normalize_unit_name"]
