"""Batched, bounded-concurrency processing of document chunks."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from ..agents.finalize import FinalizeAgent
from ..assignment.registry import PageRegistry
from ..catalog import BulkExtraction, ChunkExtraction, ProjectCatalog
from ..pages.chunking import DocumentChunk
from ..pages.models import AssignmentResult
from .aggregation import chunk_progress
from .extractors import ChunkExtractor
from .progress import (
    STAGE_AGGREGATING,
    STAGE_COMPLETE,
    STAGE_MAPPING,
    ProgressPublisher,
)

logger = logging.getLogger(__name__)


class BatchProcessingConfig(BaseModel):
    """Knobs for the batch processor."""

    batch_size: int = Field(default=10, ge=1)
    batch_delay_seconds: float = Field(default=1.0, ge=0.0)
    chunk_timeout_seconds: float = Field(default=300.0, gt=0.0)
    pages_per_chunk: int = Field(default=5, ge=1)


class BatchProcessingResult(BaseModel):
    """Outcome of a whole job; partial results are always present."""

    success: bool
    cancelled: bool = False
    assignment: AssignmentResult = Field(default_factory=AssignmentResult)
    catalog: Optional[ProjectCatalog] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    processed_chunks: int = 0
    failed_chunks: int = 0
    elapsed_seconds: float = 0.0

    def summary(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "cancelled": self.cancelled,
            "units": len(self.assignment.units),
            "total_pages": self.assignment.total_pages,
            "total_documents": self.assignment.total_documents,
            "processed_chunks": self.processed_chunks,
            "failed_chunks": self.failed_chunks,
            "errors": list(self.errors),
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }


class BatchProcessor:
    """Runs chunks through an extractor and feeds the page registry.

    Chunks inside a batch run concurrently, each bounded by the per-chunk
    timeout; batches run one after another with a fixed pause between them.
    A failed or timed-out chunk becomes an error entry and the job continues.
    """

    def __init__(
        self,
        extractor: ChunkExtractor,
        registry: PageRegistry,
        *,
        config: Optional[BatchProcessingConfig] = None,
        progress: Optional[ProgressPublisher] = None,
        finalizer: Optional[FinalizeAgent] = None,
    ) -> None:
        self._extractor = extractor
        self._registry = registry
        self._config = config or BatchProcessingConfig()
        self._progress = progress
        self._finalizer = finalizer
        self._chunk_bulk: Dict[Tuple[str, int, int], BulkExtraction] = {}
        self._total_chunks = 0

    @property
    def bulk(self) -> BulkExtraction:
        """Bulk data of every completed chunk, folded in document and chunk order."""

        folded = BulkExtraction()
        for key in sorted(self._chunk_bulk):
            folded.merge_chunk(self._chunk_bulk[key])
        return folded

    async def run(
        self,
        chunks: Sequence[DocumentChunk],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchProcessingResult:
        started = time.perf_counter()
        self._registry.reset()
        self._chunk_bulk = {}
        self._total_chunks = len(chunks)
        if self._progress is not None:
            self._registry.set_change_listener(self._progress.offer_assignment)

        errors: List[str] = []
        processed = 0
        cancelled = False
        batch_size = self._config.batch_size
        batches = [list(chunks[index : index + batch_size]) for index in range(0, len(chunks), batch_size)]
        logger.info("Processing %d chunk(s) in %d batch(es)", len(chunks), len(batches))

        for batch_number, batch in enumerate(batches, start=1):
            if cancel_event is not None and cancel_event.is_set():
                remaining = [chunk for pending in batches[batch_number - 1 :] for chunk in pending]
                errors.extend(f"{chunk.label}: cancelled before processing" for chunk in remaining)
                cancelled = True
                logger.warning("Job cancelled; skipped %d chunk(s)", len(remaining))
                break

            self._publish(
                STAGE_MAPPING,
                f"Processing batch {batch_number}/{len(batches)} ({len(batch)} chunk(s))",
            )
            outcomes = await asyncio.gather(*(self._process_chunk(chunk) for chunk in batch))
            for outcome in outcomes:
                if outcome is None:
                    processed += 1
                else:
                    errors.append(outcome)

            if batch_number < len(batches) and self._config.batch_delay_seconds > 0:
                await asyncio.sleep(self._config.batch_delay_seconds)

        catalog: Optional[ProjectCatalog] = None
        assignment = self._registry.get_assignment()
        if not cancelled:
            self._publish(STAGE_AGGREGATING, "Aggregating project data", 90.0)
            try:
                if self._finalizer is not None:
                    final_state = await self._finalizer.run(self._registry, self.bulk)
                    catalog = final_state.catalog
                    assignment = final_state.assignment
                    if final_state.error:
                        errors.append(f"finalize: {final_state.error}")
                else:
                    assignment = await self._registry.aggregate_project_data()
            except Exception as exc:
                logger.exception("Final aggregation failed")
                errors.append(f"finalize: {exc}")

        await self._registry.close()

        result = BatchProcessingResult(
            success=not errors,
            cancelled=cancelled,
            assignment=assignment,
            catalog=catalog,
            errors=errors,
            warnings=[*self._registry.warnings, *(catalog.warnings if catalog else [])],
            processed_chunks=processed,
            failed_chunks=len(chunks) - processed,
            elapsed_seconds=time.perf_counter() - started,
        )
        message = (
            f"Mapped {assignment.total_pages} page(s) into {len(assignment.units)} unit(s)"
            f" with {len(errors)} error(s)"
        )
        if self._progress is not None:
            self._progress.update(STAGE_COMPLETE, message, 100.0, **result.summary())
        logger.info(message)
        return result

    async def _process_chunk(self, chunk: DocumentChunk) -> Optional[str]:
        """Extract and insert one chunk; return an error string on failure."""

        try:
            extraction: ChunkExtraction = await asyncio.wait_for(
                self._extractor.extract(chunk),
                timeout=self._config.chunk_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Chunk %s timed out after %.1fs", chunk.label, self._config.chunk_timeout_seconds)
            return f"{chunk.label}: timed out after {self._config.chunk_timeout_seconds:.1f}s"
        except Exception as exc:
            logger.warning("Chunk %s failed: %s", chunk.label, exc)
            return f"{chunk.label}: {exc}"

        self._chunk_bulk[(chunk.source_document, chunk.chunk_index, chunk.page_start)] = extraction.bulk
        inserted = await self._registry.insert_pages(extraction.pages)
        for warning in extraction.warnings:
            logger.info("Chunk %s: %s", chunk.label, warning)

        assignment = self._registry.get_assignment()
        self._publish(
            STAGE_MAPPING,
            f"Chunk {chunk.label}: {inserted} new page(s)",
            chunk_progress(assignment.total_pages, self._total_chunks, self._config.pages_per_chunk),
        )
        return None

    def _publish(self, stage: str, message: str, progress: Optional[float] = None) -> None:
        if self._progress is None:
            return
        if progress is None:
            progress = chunk_progress(
                self._registry.get_assignment().total_pages,
                self._total_chunks,
                self._config.pages_per_chunk,
            )
        self._progress.update(stage, message, progress)


__all__ = ["BatchProcessingConfig", "BatchProcessingResult", "BatchProcessor"]
