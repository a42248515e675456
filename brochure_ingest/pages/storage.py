"""JSON storage for chunk extraction output and finished job results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..catalog import ChunkExtraction, ProjectCatalog
from .models import AssignmentResult


class RecordFormatError(ValueError):
    """Raised when a stored extraction file cannot be interpreted."""


def discover_chunk_files(records_dir: Path) -> List[Path]:
    """Return every ``*.json`` extraction file below ``records_dir`` in path order."""

    if not records_dir.exists():
        raise FileNotFoundError(f"Records directory not found: {records_dir}")
    return sorted(path for path in records_dir.rglob("*.json") if path.is_file())


def load_chunk_extraction(path: Path) -> ChunkExtraction:
    """Load one stored chunk extraction.

    Files may hold the full ``{"sourceDocument", "pages", "bulk"}`` envelope
    or a bare list of page records.
    """

    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RecordFormatError(f"{path}: invalid JSON ({exc})") from exc

    if isinstance(payload, list):
        payload = {"pages": payload}
    if not isinstance(payload, dict):
        raise RecordFormatError(f"{path}: expected an object or a list of pages")

    try:
        extraction = ChunkExtraction.model_validate(payload)
    except ValidationError as exc:
        raise RecordFormatError(f"{path}: {exc}") from exc

    if not extraction.source_document and extraction.pages:
        extraction.source_document = extraction.pages[0].source_document
    if extraction.pages and not extraction.page_start:
        extraction.page_start = min(page.page_number for page in extraction.pages)
        extraction.page_end = max(page.page_number for page in extraction.pages)
    return extraction


def store_chunk_extraction(extraction: ChunkExtraction, output_dir: Path) -> Path:
    """Write a chunk extraction to ``<output_dir>/<document stem>/chunk-NNNN.json``."""

    stem = Path(extraction.source_document or "document").stem or "document"
    target_dir = output_dir / stem
    target_dir.mkdir(parents=True, exist_ok=True)
    target_path = target_dir / f"chunk-{extraction.chunk_index + 1:04d}.json"
    target_path.write_text(
        json.dumps(extraction.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return target_path.resolve()


def store_job_result(
    job_name: str,
    assignment: AssignmentResult,
    catalog: Optional[ProjectCatalog],
    output_dir: Path,
    *,
    errors: Optional[List[str]] = None,
) -> Dict[str, Path]:
    """Store the assignment snapshot and catalog of a finished job."""

    output_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(job_name).stem or "job"
    assignment_path = output_dir / f"{stem}.assignment.json"
    catalog_path = output_dir / f"{stem}.catalog.json"

    assignment_path.write_text(
        json.dumps(assignment.model_dump(mode="json"), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    catalog_payload = {
        "catalog": catalog.model_dump(mode="json") if catalog is not None else None,
        "errors": list(errors or []),
    }
    catalog_path.write_text(json.dumps(catalog_payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return {
        "assignment_path": assignment_path.resolve(),
        "catalog_path": catalog_path.resolve(),
    }


__all__ = [
    "RecordFormatError",
    "discover_chunk_files",
    "load_chunk_extraction",
    "store_chunk_extraction",
    "store_job_result",
]
