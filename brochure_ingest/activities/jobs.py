"""Activity that runs a brochure ingestion job end to end."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from temporalio import activity

from ..config import JobConfig
from ..processing.pipeline import run_brochure_job
from ..processing.progress import ProgressEvent

logger = logging.getLogger(__name__)


@activity.defn
async def process_brochure_job_activity(
    payload: Dict[str, Any],
    parent_workflow_id: Optional[str] = None,
    parent_run_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Replay stored chunk extractions, map pages to units and build the catalog."""

    config = JobConfig.from_activity_payload(payload)
    loop = asyncio.get_running_loop()
    progress_events: List[Dict[str, Any]] = []

    parent_handle = None
    if parent_workflow_id:
        try:
            client = activity.client()
            parent_handle = client.get_workflow_handle(
                parent_workflow_id,
                run_id=parent_run_id,
            )
        except Exception as exc:  # pragma: no cover - best-effort signal hookup
            logger.debug("Unable to acquire parent workflow handle: %s", exc)
            parent_handle = None

    async def _forward(event: ProgressEvent) -> None:
        event_payload = event.to_payload()
        progress_events.append(event_payload)
        loop.call_soon_threadsafe(activity.heartbeat, event_payload)

        if parent_handle is None:
            return
        try:
            await parent_handle.signal("push_progress", {"command": "process", "event": event_payload})
        except Exception as exc:  # pragma: no cover - defensive logging
            logger.debug("Failed to signal parent workflow progress: %s", exc)

    result = await run_brochure_job(config, sink=_forward)
    result["progress"] = progress_events
    return result


__all__ = ["process_brochure_job_activity"]
