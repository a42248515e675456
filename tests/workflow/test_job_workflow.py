import asyncio
from pathlib import Path

import pytest

from brochure_ingest.activities import process_brochure_job_activity
from brochure_ingest.catalog import ChunkExtraction
from brochure_ingest.pages.storage import store_chunk_extraction
from brochure_ingest.workflows import BrochureJobInput, BrochureJobWorkflow

temporalio_testing = pytest.importorskip("temporalio.testing")
temporalio_worker = pytest.importorskip("temporalio.worker")


@pytest.mark.asyncio
async def test_job_workflow_runs_activity_and_records_progress(tmp_path: Path, brochure_pages) -> None:
    records_dir = tmp_path / "records"
    store_chunk_extraction(
        ChunkExtraction(source_document="brochure.pdf", chunk_index=0, page_start=1, page_end=12, pages=brochure_pages),
        records_dir,
    )

    env = await temporalio_testing.WorkflowEnvironment.start_time_skipping()
    try:
        async with temporalio_worker.Worker(
            env.client,
            task_queue="test-brochure-job",
            workflows=[BrochureJobWorkflow],
            activities=[process_brochure_job_activity],
        ):
            handle = await env.client.start_workflow(
                BrochureJobWorkflow.run,
                BrochureJobInput(
                    records_dir=str(records_dir),
                    output_dir=str(tmp_path / "output"),
                    llm_enabled=False,
                    batch_delay_seconds=0.0,
                ),
                id="test-brochure-job",
                task_queue="test-brochure-job",
            )
            result = await asyncio.wait_for(handle.result(), timeout=30)
            last = await handle.query(BrochureJobWorkflow.get_last_result)
    finally:
        await env.shutdown()

    assert result["status"] == "ok"
    payload = result["result"]
    assert payload["success"]
    assert payload["assignment"]["total_pages"] == 12
    assert [unit["type_name"] for unit in payload["catalog"]["units"]] == ["A-1B-A.1", "B-2BM-A.1"]
    assert payload["progress"][-1]["stage"] == "complete"
    assert (tmp_path / "output" / "records.catalog.json").exists()
    assert last["revision"] == result["revision"]


@pytest.mark.asyncio
async def test_job_workflow_reports_activity_failure(tmp_path: Path) -> None:
    env = await temporalio_testing.WorkflowEnvironment.start_time_skipping()
    try:
        async with temporalio_worker.Worker(
            env.client,
            task_queue="test-brochure-job-failure",
            workflows=[BrochureJobWorkflow],
            activities=[process_brochure_job_activity],
        ):
            handle = await env.client.start_workflow(
                BrochureJobWorkflow.run,
                BrochureJobInput(records_dir=str(tmp_path / "missing"), llm_enabled=False, timeout_minutes=1),
                id="test-brochure-job-failure",
                task_queue="test-brochure-job-failure",
            )
            result = await asyncio.wait_for(handle.result(), timeout=30)
    finally:
        await env.shutdown()

    assert result["status"] == "error"
