"""Per-job page registry that recomputes unit and project assignments on insert."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections import Counter
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..pages.models import (
    AssignmentResult,
    PageRecord,
    PageType,
    PaymentPlan,
    ProjectInfo,
)
from .boundaries import scan_unit_boundaries
from .images import assign_images_by_boundaries
from .merge import merge_same_name_units
from .project import (
    PROJECT_INFO_PAGE_TYPES,
    collect_payment_plans,
    collect_raw_amenities,
    extract_project_images,
    merge_project_info,
)

logger = logging.getLogger(__name__)

AssignmentListener = Callable[[AssignmentResult], Any]
AmenityNormalizerCallable = Callable[[List[str]], Awaitable[List[str]]]


class RegistryClosedError(RuntimeError):
    """Raised when pages are inserted into a registry that was closed."""


class ProjectFactsCache:
    """Memoized project-level facts, each guarded by a pending flag."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.amenities: List[str] = []
        self.project_info: Optional[ProjectInfo] = None
        self.payment_plans: List[PaymentPlan] = []
        self.amenities_pending = True
        self.project_info_pending = True
        self.payment_plans_pending = True

    @property
    def resolved_any(self) -> bool:
        return not (self.amenities_pending and self.project_info_pending and self.payment_plans_pending)


class PageRegistry:
    """Append-only collection of page records for a single ingestion job.

    Every successful insert re-derives the complete ``AssignmentResult`` from
    the sorted page set and hands it to the change listener without waiting
    for it. Inserts are serialized; a concurrent caller waits for the lock.
    """

    def __init__(self, *, amenity_normalizer: Optional[AmenityNormalizerCallable] = None) -> None:
        self._amenity_normalizer = amenity_normalizer
        self._lock = asyncio.Lock()
        self._pages: Dict[Tuple[str, int], PageRecord] = {}
        self._sorted: List[PageRecord] = []
        self._listener: Optional[AssignmentListener] = None
        self._notifications: Set["asyncio.Future[Any]"] = set()
        self._last_result = AssignmentResult()
        self._closed = False
        self.facts = ProjectFactsCache()
        self.warnings: List[str] = []
        self.normalizer_calls = 0

    # Lifecycle -----------------------------------------------------------

    def reset(self) -> None:
        """Clear all pages, cached facts and warnings."""

        self._pages.clear()
        self._sorted = []
        self._last_result = AssignmentResult()
        self._closed = False
        self.facts.reset()
        self.warnings = []
        self.normalizer_calls = 0

    def set_change_listener(self, listener: Optional[AssignmentListener]) -> None:
        self._listener = listener

    async def close(self) -> None:
        """Wait for in-flight listener notifications and detach the listener."""

        if self._notifications:
            await asyncio.gather(*list(self._notifications), return_exceptions=True)
        self._listener = None
        self._closed = True

    # Mutation ------------------------------------------------------------

    async def insert_pages(self, batch: Sequence[PageRecord]) -> int:
        """Insert a batch of pages and return how many were new."""

        if self._closed:
            raise RegistryClosedError("Page registry is closed")

        async with self._lock:
            inserted = 0
            for page in batch:
                if page.key in self._pages:
                    message = (
                        f"Duplicate page {page.page_number} from {page.source_document}; skipping"
                    )
                    logger.warning(message)
                    self.warnings.append(message)
                    continue
                self._pages[page.key] = page
                inserted += 1

            if inserted == 0:
                return 0

            self._sorted = sorted(self._pages.values(), key=lambda record: record.key)
            if self.facts.resolved_any:
                # Late pages invalidate facts derived from the earlier page set.
                self.facts.reset()
            result = self._recompute()

        logger.debug(
            "Inserted %d page(s); %d total, %d unit(s)",
            inserted,
            result.total_pages,
            len(result.units),
        )
        self._notify(result)
        return inserted

    async def aggregate_project_data(self) -> AssignmentResult:
        """Resolve memoized project facts once and return the refreshed result.

        The amenity normalizer is an external call; it runs at most once until
        new pages arrive.
        """

        async with self._lock:
            if self.facts.amenities_pending:
                raw = collect_raw_amenities(self._sorted)
                normalized = raw
                if self._amenity_normalizer is not None and raw:
                    self.normalizer_calls += 1
                    try:
                        normalized = list(await self._amenity_normalizer(raw))
                    except Exception as exc:
                        logger.warning("Amenity normalization failed; keeping raw list: %s", exc)
                        normalized = raw
                self.facts.amenities = normalized
                self.facts.amenities_pending = False

            if self.facts.project_info_pending:
                self.facts.project_info = merge_project_info(self._sorted)
                self.facts.project_info_pending = False

            if self.facts.payment_plans_pending:
                self.facts.payment_plans = collect_payment_plans(self._sorted)
                self.facts.payment_plans_pending = False

            return self._recompute()

    # Derivation ----------------------------------------------------------

    def _recompute(self) -> AssignmentResult:
        started = time.perf_counter()
        pages = self._sorted

        boundaries = scan_unit_boundaries(pages)
        assignments = assign_images_by_boundaries(pages, boundaries)
        units = merge_same_name_units(assignments)
        project_images = extract_project_images(pages, boundaries)

        facts = self.facts
        amenities = facts.amenities if not facts.amenities_pending else collect_raw_amenities(pages)
        project_info = facts.project_info if not facts.project_info_pending else merge_project_info(pages)
        payment_plans = (
            facts.payment_plans if not facts.payment_plans_pending else collect_payment_plans(pages)
        )

        result = AssignmentResult(
            units=units,
            project_images=project_images,
            payment_plans=list(payment_plans),
            project_info=project_info,
            amenities=list(amenities),
            boundaries=boundaries,
            total_pages=len(pages),
            total_documents=len({page.source_document for page in pages}),
            boundaries_found=len(boundaries),
            processing_time_ms=(time.perf_counter() - started) * 1000.0,
        )
        self._last_result = result
        return result

    def _notify(self, result: AssignmentResult) -> None:
        listener = self._listener
        if listener is None:
            return
        try:
            outcome = listener(result)
        except Exception:
            logger.exception("Assignment listener raised; continuing")
            return
        if inspect.isawaitable(outcome):
            future = asyncio.ensure_future(outcome)
            self._notifications.add(future)
            future.add_done_callback(self._notification_done)

    def _notification_done(self, future: "asyncio.Future[Any]") -> None:
        self._notifications.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("Assignment listener failed: %s", exc)

    # Queries -------------------------------------------------------------

    def get_assignment(self) -> AssignmentResult:
        return self._last_result

    @property
    def pages(self) -> List[PageRecord]:
        return list(self._sorted)

    def anchor_pages(self) -> List[PageRecord]:
        return [
            page
            for page in self._sorted
            if page.page_type is PageType.UNIT_ANCHOR or page.boundary_markers.is_unit_start
        ]

    def payment_plan_pages(self) -> List[PageRecord]:
        return [page for page in self._sorted if page.page_type is PageType.PAYMENT_PLAN]

    def project_info_pages(self) -> List[PageRecord]:
        return [page for page in self._sorted if page.page_type in PROJECT_INFO_PAGE_TYPES]

    def tower_characteristics_pages(self) -> List[PageRecord]:
        return [page for page in self._sorted if page.page_type is PageType.TOWER_CHARACTERISTICS]

    def pages_for_document(self, source_document: str) -> List[PageRecord]:
        return [page for page in self._sorted if page.source_document == source_document]

    def stats(self) -> Dict[str, Any]:
        page_types = Counter(page.page_type.value for page in self._sorted)
        return {
            "total_pages": len(self._sorted),
            "total_documents": len({page.source_document for page in self._sorted}),
            "anchor_pages": len(self.anchor_pages()),
            "duplicates_skipped": len(self.warnings),
            "page_types": dict(sorted(page_types.items())),
        }


__all__ = [
    "AmenityNormalizerCallable",
    "AssignmentListener",
    "PageRegistry",
    "ProjectFactsCache",
    "RegistryClosedError",
]
