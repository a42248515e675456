"""Bounded progress publishing for ingestion jobs."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..pages.models import AssignmentResult

logger = logging.getLogger(__name__)

STAGE_SPLITTING = "splitting"
STAGE_MAPPING = "mapping"
STAGE_AGGREGATING = "aggregating"
STAGE_COMPLETE = "complete"
STAGE_FAILED = "failed"


class ProgressEvent(BaseModel):
    """One progress update: stage, message, percentage and optional snapshot."""

    stage: str
    message: str = ""
    progress: float = 0.0
    assignment: Optional[AssignmentResult] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("progress", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
        return min(max(number, 0.0), 100.0)

    def to_payload(self, include_assignment: bool = False) -> Dict[str, Any]:
        """Return a JSON-friendly dict, optionally carrying the full snapshot."""

        payload: Dict[str, Any] = {
            "stage": self.stage,
            "message": self.message,
            "progress": round(self.progress, 1),
            "metadata": dict(self.metadata),
        }
        if self.assignment is not None:
            payload["units"] = len(self.assignment.units)
            payload["total_pages"] = self.assignment.total_pages
            if include_assignment:
                payload["assignment"] = self.assignment.model_dump(mode="json")
        return payload


ProgressSink = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


class ProgressPublisher:
    """Single-consumer queue between the registry and a progress sink.

    Producers never block: when the queue is full the oldest pending event is
    discarded, since each event replaces the previous one wholesale.
    """

    def __init__(
        self,
        sink: Optional[ProgressSink] = None,
        *,
        maxsize: int = 16,
        history_size: int = 256,
    ) -> None:
        self._sink = sink
        self._queue: "asyncio.Queue[Optional[ProgressEvent]]" = asyncio.Queue(maxsize=max(maxsize, 1))
        self._task: Optional["asyncio.Task[None]"] = None
        self._stage = STAGE_SPLITTING
        self._progress = 0.0
        self.dropped = 0
        self.delivered = 0
        # Summaries only; snapshots are not retained.
        self.history: Deque[Dict[str, Any]] = deque(maxlen=max(history_size, 1))

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.ensure_future(self._consume())

    def publish(self, event: ProgressEvent) -> None:
        self._stage = event.stage
        self._progress = event.progress
        self._put(event)

    def update(self, stage: str, message: str, progress: float, **metadata: Any) -> None:
        self.publish(ProgressEvent(stage=stage, message=message, progress=progress, metadata=metadata))

    def offer_assignment(self, result: AssignmentResult) -> None:
        """Registry change listener: forward a snapshot under the current stage."""

        self.publish(
            ProgressEvent(
                stage=self._stage,
                message=f"{result.total_pages} page(s) mapped into {len(result.units)} unit(s)",
                progress=self._progress,
                assignment=result,
            )
        )

    def _put(self, item: Optional[ProgressEvent]) -> None:
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                try:
                    self._queue.get_nowait()
                except asyncio.QueueEmpty:  # pragma: no cover - consumer raced us
                    continue
                self.dropped += 1

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            self.history.append(event.to_payload())
            if self._sink is None:
                continue
            try:
                outcome = self._sink(event)
                if inspect.isawaitable(outcome):
                    await outcome
                self.delivered += 1
            except Exception as exc:
                logger.warning("Progress sink failed for %s event: %s", event.stage, exc)

    async def close(self) -> None:
        """Flush queued events and stop the consumer."""

        if self._task is None:
            return
        self._put(None)
        await self._task
        self._task = None


def logging_sink(event: ProgressEvent) -> None:
    logger.info("[%s %5.1f%%] %s", event.stage, event.progress, event.message)


__all__ = [
    "ProgressEvent",
    "ProgressPublisher",
    "ProgressSink",
    "STAGE_AGGREGATING",
    "STAGE_COMPLETE",
    "STAGE_FAILED",
    "STAGE_MAPPING",
    "STAGE_SPLITTING",
    "logging_sink",
]
