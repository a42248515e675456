"""Temporal workflow that runs one brochure ingestion job."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

PROCESS_BROCHURE_JOB_ACTIVITY = "process_brochure_job_activity"


@dataclass
class BrochureJobInput:
    """Input payload for the brochure job workflow."""

    records_dir: str = "records"
    output_dir: str = "output"
    ollama_model: str = "qwen3:4b"
    ollama_base_url: str = "http://127.0.0.1:11434"
    temperature: float = 0.0
    llm_enabled: bool = True
    batch_size: int = 10
    batch_delay_seconds: float = 1.0
    chunk_timeout_seconds: float = 300.0
    pages_per_chunk: int = 5
    progress_queue_size: int = 16
    timeout_minutes: int = 60
    max_attempts: int = 1

    def to_activity_payload(self) -> Dict[str, Any]:
        return {
            "records_dir": self.records_dir,
            "output_dir": self.output_dir,
            "ollama_model": self.ollama_model,
            "ollama_base_url": self.ollama_base_url,
            "temperature": self.temperature,
            "llm_enabled": self.llm_enabled,
            "batch_size": self.batch_size,
            "batch_delay_seconds": self.batch_delay_seconds,
            "chunk_timeout_seconds": self.chunk_timeout_seconds,
            "pages_per_chunk": self.pages_per_chunk,
            "progress_queue_size": self.progress_queue_size,
        }


@workflow.defn
class BrochureJobWorkflow:
    """Runs the job activity and exposes its progress through queries."""

    def __init__(self) -> None:
        self._progress: List[Dict[str, Any]] = []
        self._last_result: Optional[Dict[str, Any]] = None
        self._result_revision = 0

    @workflow.signal
    def push_progress(self, payload: Dict[str, Any]) -> None:
        """Receive incremental progress updates from the running activity."""

        event = payload.get("event") if isinstance(payload, dict) else None
        if not isinstance(event, dict):
            return

        copied = {
            "stage": str(event.get("stage", "")),
            "message": str(event.get("message", "")),
            "progress": float(event.get("progress") or 0.0),
            "metadata": dict(event.get("metadata") or {}),
        }
        for key in ("units", "total_pages"):
            if key in event:
                copied[key] = event[key]
        self._progress.append(copied)
        self._store_result({"status": "running", "result": {"progress": list(self._progress)}})

    @workflow.query
    def get_progress(self) -> List[Dict[str, Any]]:
        return list(self._progress)

    @workflow.query
    def get_last_result(self) -> Optional[Dict[str, Any]]:
        return self._last_result

    @workflow.run
    async def run(self, payload: Optional[BrochureJobInput] = None) -> Dict[str, Any]:
        job = payload or BrochureJobInput()
        info = workflow.info()
        self._store_result({"status": "running", "result": {"progress": []}})

        try:
            response = await workflow.execute_activity(
                PROCESS_BROCHURE_JOB_ACTIVITY,
                args=(job.to_activity_payload(), info.workflow_id, info.run_id),
                schedule_to_close_timeout=workflow.timedelta(minutes=job.timeout_minutes),
                heartbeat_timeout=workflow.timedelta(seconds=max(job.chunk_timeout_seconds * 2, 60)),
                retry_policy=RetryPolicy(maximum_attempts=max(job.max_attempts, 1)),
            )
        except Exception as exc:
            workflow.logger.warning("Brochure job failed: %s", exc)
            return self._store_result(
                {
                    "status": "error",
                    "message": str(exc),
                    "result": {"progress": list(self._progress)},
                }
            )

        return self._store_result({"status": "ok", "result": response})

    def _store_result(self, result: Dict[str, Any]) -> Dict[str, Any]:
        self._result_revision += 1
        payload = dict(result)
        payload["revision"] = self._result_revision
        self._last_result = payload
        return payload


__all__ = ["BrochureJobInput", "BrochureJobWorkflow", "PROCESS_BROCHURE_JOB_ACTIVITY"]
