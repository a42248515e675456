"""Batch processing, progress publishing and catalog aggregation."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

_EXPORTS = {
    "BatchProcessingConfig": "batch",
    "BatchProcessingResult": "batch",
    "BatchProcessor": "batch",
    "ChunkExtractionError": "extractors",
    "ChunkExtractor": "extractors",
    "JsonReplayExtractor": "extractors",
    "ProgressEvent": "progress",
    "ProgressPublisher": "progress",
    "logging_sink": "progress",
    "run_brochure_job": "pipeline",
}

__all__ = sorted(_EXPORTS)

if TYPE_CHECKING:
    from .batch import BatchProcessingConfig, BatchProcessingResult, BatchProcessor
    from .extractors import ChunkExtractionError, ChunkExtractor, JsonReplayExtractor
    from .pipeline import run_brochure_job
    from .progress import ProgressEvent, ProgressPublisher, logging_sink


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(f".{_EXPORTS[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted({*globals(), *__all__})
