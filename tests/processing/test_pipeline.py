from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest

from brochure_ingest.agents.description import DescriptionWriterConfig
from brochure_ingest.agents.finalize import FinalizeAgent
from brochure_ingest.assignment.registry import PageRegistry
from brochure_ingest.catalog import BulkExtraction, BulkUnit, ChunkExtraction
from brochure_ingest.config import JobConfig
from brochure_ingest.pages.storage import store_chunk_extraction
from brochure_ingest.processing.extractors import ChunkExtractionError, JsonReplayExtractor
from brochure_ingest.processing.pipeline import run_brochure_job
from brochure_ingest.processing.progress import ProgressEvent


def _write_records(records_dir: Path, pages) -> None:
    bulk_by_chunk = [
        BulkExtraction(
            project_name="Marina Heights",
            description="Waterfront towers.",
            units=[BulkUnit(type_name="A-1B-A.1", bedrooms=1, bathrooms=1, area=750, price=900_000)],
        ),
        BulkExtraction(units=[BulkUnit(type_name="B-2BM-A.1", bedrooms=2, area=1200, price=1_500_000)]),
        BulkExtraction(amenities=["Pool"]),
    ]
    for index, start in enumerate(range(0, len(pages), 4)):
        part = pages[start : start + 4]
        store_chunk_extraction(
            ChunkExtraction(
                source_document="brochure.pdf",
                chunk_index=index,
                page_start=part[0].page_number,
                page_end=part[-1].page_number,
                pages=part,
                bulk=bulk_by_chunk[index],
            ),
            records_dir,
        )


@pytest.mark.asyncio
async def test_replay_extractor_orders_and_caches_chunks(tmp_path: Path, brochure_pages) -> None:
    _write_records(tmp_path, brochure_pages)
    extractor = JsonReplayExtractor(tmp_path)

    chunks = extractor.discover_chunks()

    assert [(chunk.chunk_index, chunk.page_start, chunk.page_end) for chunk in chunks] == [(0, 1, 4), (1, 5, 8), (2, 9, 12)]
    extraction = await extractor.extract(chunks[1])
    assert [page.page_number for page in extraction.pages] == [5, 6, 7, 8]

    chunks[0].path = None
    with pytest.raises(ChunkExtractionError):
        await extractor.extract(chunks[0])


@pytest.mark.asyncio
async def test_brochure_job_end_to_end(tmp_path: Path, brochure_pages) -> None:
    records_dir = tmp_path / "records"
    _write_records(records_dir, brochure_pages)
    config = JobConfig(
        records_dir=str(records_dir),
        output_dir=str(tmp_path / "output"),
        llm_enabled=False,
        batch_size=2,
        batch_delay_seconds=0.0,
        pages_per_chunk=4,
    )
    events: List[ProgressEvent] = []

    result = await run_brochure_job(
        config,
        sink=events.append,
        registry=PageRegistry(),
        finalizer=FinalizeAgent.from_config(DescriptionWriterConfig(enabled=False)),
    )

    assert result["success"], result["errors"]
    assignment = result["assignment"]
    assert assignment["total_pages"] == 12
    assert [(b["unit_type_name"], b["start_page"], b["end_page"]) for b in assignment["boundaries"]] == [
        ("A-1B-A.1", 4, 6),
        ("B-2BM-A.1", 7, 8),
    ]
    assert assignment["amenities"] == ["Pool", "Gym"]

    catalog = result["catalog"]
    assert catalog["project_name"] == "Marina Heights"
    assert catalog["developer"] == "Acme Developments"
    assert catalog["area"] == "Dubai Marina"
    assert catalog["amenities"] == ["Pool", "Gym"]
    assert [unit["type_name"] for unit in catalog["units"]] == ["A-1B-A.1", "B-2BM-A.1"]
    assert catalog["units"][0]["interior_images"] == ["img/a1-living.jpg"]
    assert catalog["units"][1]["bathrooms"] == 2
    assert catalog["payment_plan_highlight"] == "60/40 payment plan"
    assert catalog["cover_images"] == ["img/cover.jpg", "img/logo.png"]
    assert len(catalog["description"]) > 50

    assert events[0].stage == "splitting"
    assert events[-1].stage == "complete"
    stored = json.loads(Path(result["stored"]["catalog_path"]).read_text(encoding="utf-8"))
    assert stored["catalog"]["project_name"] == "Marina Heights"
    assert stored["errors"] == []


@pytest.mark.asyncio
async def test_brochure_job_with_missing_records_raises(tmp_path: Path) -> None:
    config = JobConfig(records_dir=str(tmp_path / "missing"), output_dir=str(tmp_path / "out"), llm_enabled=False)

    with pytest.raises(FileNotFoundError):
        await run_brochure_job(config, store=False)


@pytest.mark.asyncio
async def test_unreadable_chunk_file_is_reported_and_job_continues(tmp_path: Path, brochure_pages) -> None:
    records_dir = tmp_path / "records"
    store_chunk_extraction(
        ChunkExtraction(source_document="brochure.pdf", chunk_index=0, page_start=1, page_end=4, pages=brochure_pages[:4]),
        records_dir,
    )
    (records_dir / "broken.json").write_text("{not json", encoding="utf-8")
    config = JobConfig(
        records_dir=str(records_dir),
        output_dir=str(tmp_path / "output"),
        llm_enabled=False,
        batch_delay_seconds=0.0,
    )

    result = await run_brochure_job(
        config,
        registry=PageRegistry(),
        finalizer=FinalizeAgent.from_config(DescriptionWriterConfig(enabled=False)),
        store=False,
    )

    assert not result["success"]
    assert len(result["errors"]) == 1
    assert result["errors"][0].startswith("broken.json#0: ")
    assert result["failed_chunks"] == 1
    assert result["assignment"]["total_pages"] == 4
