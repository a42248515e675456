"""Agents wrapping external model calls.

The LangGraph finalize pass lives in :mod:`brochure_ingest.agents.finalize`
and is imported from there directly.
"""

from __future__ import annotations

import warnings

try:
    from pydantic.warnings import UnsupportedFieldAttributeWarning
except ImportError:  # pragma: no cover - pydantic compat guard
    pass
else:
    warnings.filterwarnings("ignore", category=UnsupportedFieldAttributeWarning)

from .amenities import AmenityNormalizer, AmenityNormalizerConfig, fallback_filter_amenities
from .description import DescriptionWriterConfig, ProjectDescriptionWriter, generate_basic_description

__all__ = [
    "AmenityNormalizer",
    "AmenityNormalizerConfig",
    "DescriptionWriterConfig",
    "ProjectDescriptionWriter",
    "fallback_filter_amenities",
    "generate_basic_description",
]
