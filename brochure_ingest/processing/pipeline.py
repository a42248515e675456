"""End-to-end job wiring shared by the CLI and the Temporal activity."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..agents.amenities import AmenityNormalizer, AmenityNormalizerConfig
from ..agents.description import DescriptionWriterConfig
from ..agents.finalize import FinalizeAgent
from ..assignment.registry import PageRegistry
from ..config import JobConfig
from ..pages.storage import store_job_result
from .batch import BatchProcessingConfig, BatchProcessingResult, BatchProcessor
from .extractors import ChunkExtractor, JsonReplayExtractor
from .progress import STAGE_FAILED, STAGE_SPLITTING, ProgressPublisher, ProgressSink

logger = logging.getLogger(__name__)


def build_batch_config(config: JobConfig) -> BatchProcessingConfig:
    return BatchProcessingConfig(
        batch_size=config.batch_size,
        batch_delay_seconds=config.batch_delay_seconds,
        chunk_timeout_seconds=config.chunk_timeout_seconds,
        pages_per_chunk=config.pages_per_chunk,
    )


def build_registry(config: JobConfig) -> PageRegistry:
    normalizer = AmenityNormalizer(
        AmenityNormalizerConfig(
            ollama_model=config.ollama_model,
            ollama_base_url=config.ollama_base_url,
            temperature=config.temperature,
            enabled=config.llm_enabled,
        )
    )
    return PageRegistry(amenity_normalizer=normalizer)


def build_finalizer(config: JobConfig) -> FinalizeAgent:
    return FinalizeAgent.from_config(
        DescriptionWriterConfig(
            ollama_model=config.ollama_model,
            ollama_base_url=config.ollama_base_url,
            enabled=config.llm_enabled,
        )
    )


async def run_brochure_job(
    config: JobConfig,
    *,
    sink: Optional[ProgressSink] = None,
    cancel_event: Optional[asyncio.Event] = None,
    extractor: Optional[ChunkExtractor] = None,
    registry: Optional[PageRegistry] = None,
    finalizer: Optional[FinalizeAgent] = None,
    store: bool = True,
) -> Dict[str, Any]:
    """Replay stored chunk extractions for a job and return a JSON-friendly result.

    Without an explicit ``extractor`` the job reads chunk files from
    ``config.records_dir``. Output files are written under ``config.output_dir``
    when ``store`` is true.
    """

    publisher = ProgressPublisher(sink, maxsize=config.progress_queue_size)
    publisher.start()
    publisher.update(STAGE_SPLITTING, f"Discovering chunks under {config.records_dir}", 5.0)

    try:
        if extractor is None:
            replay = JsonReplayExtractor(Path(config.records_dir))
            chunks = await asyncio.to_thread(replay.discover_chunks)
            extractor = replay
        else:
            discover = getattr(extractor, "discover_chunks", None)
            chunks = list(discover()) if callable(discover) else []

        processor = BatchProcessor(
            extractor,
            registry or build_registry(config),
            config=build_batch_config(config),
            progress=publisher,
            finalizer=finalizer or build_finalizer(config),
        )
        result: BatchProcessingResult = await processor.run(chunks, cancel_event=cancel_event)
    except Exception as exc:
        publisher.update(STAGE_FAILED, f"Job failed: {exc}", 100.0)
        await publisher.close()
        raise

    await publisher.close()

    stored: Dict[str, str] = {}
    if store:
        job_name = Path(config.records_dir).name or "job"
        paths = await asyncio.to_thread(
            store_job_result,
            job_name,
            result.assignment,
            result.catalog,
            Path(config.output_dir),
            errors=result.errors,
        )
        stored = {name: str(path) for name, path in paths.items()}
        logger.info("Stored job output under %s", config.output_dir)

    payload = result.model_dump(mode="json")
    payload["summary"] = result.summary()
    payload["stored"] = stored
    payload["progress"] = list(publisher.history)
    payload["progress_dropped"] = publisher.dropped
    return payload


__all__ = [
    "build_batch_config",
    "build_finalizer",
    "build_registry",
    "run_brochure_job",
]
