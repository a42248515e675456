"""Single-pass detection of unit page ranges over sorted page records."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from ..pages.models import PageRecord, UnitBoundary

logger = logging.getLogger(__name__)

MIN_SPECIFIC_NAME_LENGTH = 8
NAME_SEPARATORS = ("-", ".", "_", "/")

_GENERIC_NAME_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^studio$",
        r"^\d+\s*-?\s*bed(room)?s?(\s+(apartment|unit|flat))?$",
        r"^\d+\s*br$",
        r"^\d+\s*bhk$",
        r"^penthouse$",
        r"^duplex$",
        r"^townhouse$",
        r"^villa$",
        r"^apartment$",
    )
]

# Coded layout identifiers such as "A-1B-A.1", "B-2BM-A.1" or "A-PH-A.1".
_SPECIFIC_NAME_PATTERNS = [
    re.compile(r"^[A-Z]-\d+[A-Z]+-[A-Z]\.\d+$", re.IGNORECASE),
    re.compile(r"^[A-Z]-PH-[A-Z]\.\d+$", re.IGNORECASE),
]


def is_generic_unit_name(name: Optional[str]) -> bool:
    """Return ``True`` when ``name`` is a bare category label, not a layout."""

    candidate = (name or "").strip()
    if not candidate:
        return True
    if any(pattern.match(candidate) for pattern in _GENERIC_NAME_PATTERNS):
        return True
    if any(pattern.match(candidate) for pattern in _SPECIFIC_NAME_PATTERNS):
        return False
    if len(candidate) < MIN_SPECIFIC_NAME_LENGTH and not any(sep in candidate for sep in NAME_SEPARATORS):
        return True
    return False


@dataclass
class _OpenBoundary:
    name: str
    start_page: int
    source_document: str
    sources: Set[str] = field(default_factory=set)

    def close(self, end_page: int) -> UnitBoundary:
        end_page = max(end_page, self.start_page)
        return UnitBoundary(
            unit_type_name=self.name,
            start_page=self.start_page,
            end_page=end_page,
            page_count=end_page - self.start_page + 1,
            source_documents=sorted(self.sources),
        )


def scan_unit_boundaries(pages: Sequence[PageRecord]) -> List[UnitBoundary]:
    """Detect unit boundaries in pages sorted by (source document, page number).

    Rules are applied per page in priority order: a unit-start page with a
    specific name opens a new boundary (closing any open one on the previous
    page), a section start closes the open boundary on the page before it, a
    unit-end page closes it inclusively, and any other page extends the open
    boundary. A boundary never spans two source documents.
    """

    boundaries: List[UnitBoundary] = []
    current: Optional[_OpenBoundary] = None
    previous: Optional[PageRecord] = None

    for page in pages:
        markers = page.boundary_markers

        if current is not None and previous is not None and page.source_document != current.source_document:
            boundaries.append(current.close(previous.page_number))
            current = None

        unit_name = page.unit_name
        if markers.is_unit_start and unit_name:
            if is_generic_unit_name(unit_name):
                logger.debug(
                    "Ignoring generic unit name %r on %s page %s",
                    unit_name,
                    page.source_document,
                    page.page_number,
                )
            else:
                if current is not None:
                    end_page = previous.page_number if previous is not None else page.page_number - 1
                    boundaries.append(current.close(end_page))
                current = _OpenBoundary(
                    name=unit_name,
                    start_page=page.page_number,
                    source_document=page.source_document,
                    sources={page.source_document},
                )
                previous = page
                continue

        if markers.is_section_start:
            if current is not None:
                boundaries.append(current.close(page.page_number - 1))
                current = None
        elif markers.is_unit_end:
            if current is not None:
                current.sources.add(page.source_document)
                boundaries.append(current.close(page.page_number))
                current = None
        elif current is not None:
            current.sources.add(page.source_document)

        previous = page

    if current is not None and previous is not None:
        boundaries.append(current.close(previous.page_number))

    logger.debug("Detected %d unit boundaries across %d pages", len(boundaries), len(pages))
    return boundaries


__all__ = ["is_generic_unit_name", "scan_unit_boundaries"]
