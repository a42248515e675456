"""Temporal worker entry point for brochure ingestion jobs."""

from __future__ import annotations

import argparse
import asyncio
import logging

from temporalio.client import Client
from temporalio.worker import Worker

from ..activities import process_brochure_job_activity
from ..config import (
    DEFAULT_TEMPORAL_ADDRESS,
    DEFAULT_TEMPORAL_NAMESPACE,
    DEFAULT_TEMPORAL_TASK_QUEUE,
)
from ..utils.cli import configure_logging
from ..workflows import BrochureJobWorkflow

logger = logging.getLogger(__name__)


async def _run_worker(address: str, namespace: str, task_queue: str) -> None:
    client = await Client.connect(address, namespace=namespace)
    worker = Worker(
        client,
        task_queue=task_queue,
        workflows=[BrochureJobWorkflow],
        activities=[process_brochure_job_activity],
    )
    logger.info("Worker listening on %s (namespace=%s, queue=%s)", address, namespace, task_queue)
    await worker.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the Temporal worker for brochure ingestion jobs",
    )
    parser.add_argument(
        "--address",
        default=DEFAULT_TEMPORAL_ADDRESS,
        help="Temporal server address (host:port)",
    )
    parser.add_argument(
        "--namespace",
        default=DEFAULT_TEMPORAL_NAMESPACE,
        help="Temporal namespace",
    )
    parser.add_argument(
        "--task-queue",
        default=DEFAULT_TEMPORAL_TASK_QUEUE,
        help="Temporal task queue",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level for the worker process",
    )
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(args.log_level)
    asyncio.run(_run_worker(args.address, args.namespace, args.task_queue))


if __name__ == "__main__":  # pragma: no cover
    main()
