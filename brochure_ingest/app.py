"""Command-line entry point: run a brochure job locally or through Temporal."""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from temporalio.client import Client, WorkflowHandle

from .config import JobConfig
from .pages.chunking import ChunkingConfig, count_pdf_pages, split_pdf_into_chunks
from .processing.pipeline import run_brochure_job
from .processing.progress import ProgressEvent
from .utils.cli import (
    build_main_cli_parser,
    build_result_renderable,
    configure_logging,
    emit_plain_result,
    format_progress_line,
    get_console,
    stage_style,
    temporal_ui_url,
    workflow_history_url,
)
from .workflows import BrochureJobInput, BrochureJobWorkflow

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(value: object, default: int = 0) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _console_sink(plain: bool):
    console = get_console()

    def _sink(event: ProgressEvent) -> None:
        line = format_progress_line(event.to_payload())
        if plain:
            print(line)
        else:
            console.print(line, style=stage_style(event.stage))

    return _sink


async def _run_local(cfg: JobConfig, plain: bool) -> Dict[str, Any]:
    if not Path(cfg.records_dir).exists():
        raise SystemExit(f"Records directory not found: {cfg.records_dir}")
    return await run_brochure_job(cfg, sink=_console_sink(plain))


async def _start_workflow(cfg: JobConfig) -> Tuple[WorkflowHandle, str, Optional[str], Optional[str]]:
    """Start the job workflow and return identifiers."""

    ui_url = temporal_ui_url(cfg.address, cfg.namespace)
    client = await Client.connect(cfg.address, namespace=cfg.namespace)

    wf_id = f"{cfg.workflow_id_prefix_value()}-{uuid.uuid4().hex}"
    handle = await client.start_workflow(
        BrochureJobWorkflow.run,
        BrochureJobInput(**cfg.to_activity_payload()),
        id=wf_id,
        task_queue=cfg.task_queue,
    )

    workflow_link = workflow_history_url(ui_url, wf_id) if ui_url else None
    return handle, wf_id, ui_url, workflow_link


async def _follow_workflow(handle: WorkflowHandle, plain: bool) -> Dict[str, Any]:
    """Print progress events as the workflow records them, then return its result."""

    console = get_console()
    result_task = asyncio.ensure_future(handle.result())
    seen = 0
    last_revision = 0
    while not result_task.done():
        try:
            snapshot = await handle.query(BrochureJobWorkflow.get_last_result)
        except Exception as exc:  # pragma: no cover - defensive network guard
            logger.debug("Unable to query workflow result: %s", exc)
            snapshot = None

        if isinstance(snapshot, dict) and _safe_int(snapshot.get("revision")) > last_revision:
            last_revision = _safe_int(snapshot.get("revision"))
            events = (snapshot.get("result") or {}).get("progress") or []
            for event in events[seen:]:
                line = format_progress_line(event)
                if plain:
                    print(line)
                else:
                    console.print(line, style=stage_style(str(event.get("stage", ""))))
            seen = max(seen, len(events))

        await asyncio.wait({result_task}, timeout=0.5)

    return result_task.result()


async def _run_temporal(cfg: JobConfig, plain: bool) -> Dict[str, Any]:
    handle, wf_id, ui_url, workflow_link = await _start_workflow(cfg)
    if plain:
        print(f"Workflow ID     : {wf_id}")
        if workflow_link:
            print(f"Track progress  : {workflow_link}")
    else:
        console = get_console()
        console.rule("[bold cyan]Brochure job submitted[/]")
        console.print(f"Workflow ID: [bold]{wf_id}[/]")
        if workflow_link:
            console.print(f"Track progress: [cyan]{workflow_link}[/]")
        elif ui_url:
            console.print(f"Temporal UI: [cyan]{ui_url}[/]")

    outcome = await _follow_workflow(handle, plain)
    if outcome.get("status") != "ok":
        return outcome
    return outcome.get("result") or {}


def split_pdf(pdf_path: Path, config: JobConfig) -> List[Dict[str, Any]]:
    """Split a brochure into chunk PDFs ready for the extraction service."""

    if not pdf_path.exists():
        raise SystemExit(f"PDF not found: {pdf_path}")
    chunks = split_pdf_into_chunks(
        pdf_path,
        Path(config.output_dir) / "chunks",
        ChunkingConfig(pages_per_chunk=config.pages_per_chunk),
    )
    return [
        {
            "chunk_index": chunk.chunk_index,
            "page_start": chunk.page_start,
            "page_end": chunk.page_end,
            "path": chunk.path,
        }
        for chunk in chunks
    ]


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_main_cli_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    options = vars(args)
    use_temporal = options.pop("temporal")
    plain = options.pop("plain")
    options.pop("log_level")
    pdf_path = options.pop("split_pdf")
    config = JobConfig(**options)

    if pdf_path:
        chunks = split_pdf(Path(pdf_path), config)
        print(f"{pdf_path}: {count_pdf_pages(Path(pdf_path))} page(s)")
        for chunk in chunks:
            print(f"{chunk['path']} (pages {chunk['page_start']}-{chunk['page_end']})")
        return

    runner = _run_temporal if use_temporal else _run_local
    try:
        result = asyncio.run(runner(config, plain))
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return

    if plain or result.get("status") == "error":
        emit_plain_result(result)
        return
    get_console().print(build_result_renderable(result))


if __name__ == "__main__":  # pragma: no cover
    main()
