"""CLI helper utilities shared across the brochure ingestion commands."""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from rich import box
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..config import (
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_TIMEOUT_SECONDS,
    DEFAULT_LLM_ENABLED,
    DEFAULT_OLLAMA_BASE_URL,
    DEFAULT_OLLAMA_MODEL,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PAGES_PER_CHUNK,
    DEFAULT_PROGRESS_QUEUE_SIZE,
    DEFAULT_RECORDS_DIR,
    DEFAULT_TEMPORAL_ADDRESS,
    DEFAULT_TEMPORAL_NAMESPACE,
    DEFAULT_TEMPORAL_TASK_QUEUE,
)

_CONSOLE: Optional[Console] = None

NOISY_LOGGERS = ("httpx", "httpcore", "ollama", "temporalio.activity")


@dataclass(frozen=True)
class CLITheme:
    """Palette used by the Rich renderables."""

    accent: str = "#38bdf8"
    highlight: str = "#a855f7"
    success: str = "#22c55e"
    warning: str = "#facc15"
    error: str = "#f87171"
    muted: str = "#9ca3af"


DEFAULT_THEME = CLITheme()


def get_console() -> Console:
    """Return a singleton Rich Console configured for the CLI."""

    global _CONSOLE

    if _CONSOLE is None:
        _CONSOLE = Console(
            log_time=False,
            log_path=False,
            highlight=False,
            soft_wrap=True,
        )

    return _CONSOLE


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once and quiet chatty client libraries."""

    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))


def stage_style(stage: str, theme: CLITheme = DEFAULT_THEME) -> str:
    mapping = {
        "splitting": theme.muted,
        "mapping": theme.accent,
        "aggregating": theme.highlight,
        "complete": theme.success,
        "failed": theme.error,
    }
    return mapping.get(stage.lower(), theme.accent)


def format_progress_line(event: Dict[str, Any]) -> str:
    stage = str(event.get("stage", "")).strip() or "progress"
    message = str(event.get("message", "")).strip()
    try:
        progress = float(event.get("progress") or 0.0)
    except (TypeError, ValueError):
        progress = 0.0
    return f"[{stage} {progress:5.1f}%] {message}".rstrip()


def _units_table(units: Iterable[Dict[str, Any]], theme: CLITheme) -> Table:
    table = Table(box=box.SIMPLE_HEAVY, expand=True, header_style=f"bold {theme.accent}")
    table.add_column("Unit", style="bold")
    table.add_column("Category")
    table.add_column("Beds", justify="right")
    table.add_column("Baths", justify="right")
    table.add_column("Area", justify="right")
    table.add_column("Images", justify="right")

    for unit in units:
        images = sum(
            len(unit.get(key) or [])
            for key in ("floor_plan_images", "rendering_images", "interior_images", "balcony_images")
        )
        table.add_row(
            str(unit.get("type_name") or unit.get("unit_type_name") or "?"),
            str(unit.get("category") or "-"),
            _format_number(unit.get("bedrooms")),
            _format_number(unit.get("bathrooms")),
            _format_number(unit.get("area")),
            str(images or len(unit.get("all_images") or [])),
        )
    return table


def _format_number(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_result_renderable(result: Dict[str, Any], theme: CLITheme = DEFAULT_THEME) -> RenderableType:
    """Render a job result (as returned by the pipeline) as a Rich group."""

    summary = result.get("summary") or {}
    catalog = result.get("catalog") or {}
    assignment = result.get("assignment") or {}
    errors: List[str] = list(result.get("errors") or [])
    warnings: List[str] = list(result.get("warnings") or [])

    header = Text()
    header.append(str(catalog.get("project_name") or "Unnamed project"), style=f"bold {theme.accent}")
    if catalog.get("developer"):
        header.append(f"  by {catalog['developer']}", style=theme.muted)
    header.append(
        f"\n{summary.get('total_pages', assignment.get('total_pages', 0))} page(s) across "
        f"{summary.get('total_documents', assignment.get('total_documents', 0))} document(s)",
        style=theme.muted,
    )

    parts: List[RenderableType] = [header]
    units = catalog.get("units") or assignment.get("units") or []
    if units:
        parts.append(_units_table(units, theme))
    if catalog.get("description"):
        parts.append(Text(str(catalog["description"]), overflow="fold"))
    if warnings:
        parts.append(Text("\n".join(f"! {warning}" for warning in warnings), style=theme.warning))
    if errors:
        parts.append(Text("\n".join(f"x {error}" for error in errors), style=theme.error))

    border = theme.success if result.get("success") else theme.warning
    return Panel(Group(*parts), title="Brochure job", border_style=border, expand=True)


def emit_plain_result(result: Dict[str, Any]) -> None:
    """Plain-text rendering for non-interactive output."""

    status = result.get("status")
    if status == "error":
        print(f"[error] {result.get('message') or 'Workflow returned an error.'}")
        return

    payload = result.get("result", result) or {}
    for event in payload.get("progress") or []:
        print(format_progress_line(event))

    summary = payload.get("summary")
    if summary:
        print(json.dumps(summary, indent=2))
    stored = payload.get("stored") or {}
    for name, path in stored.items():
        print(f"{name}: {path}")
    for error in payload.get("errors") or []:
        print(f"[error] {error}")


def build_main_cli_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the brochure ingestion application."""

    parser = argparse.ArgumentParser(description="Map brochure pages to units and build a project catalog")
    parser.add_argument(
        "--records-dir",
        default=DEFAULT_RECORDS_DIR,
        help="Directory holding stored chunk extraction JSON files.",
    )
    parser.add_argument(
        "--output-dir",
        default=DEFAULT_OUTPUT_DIR,
        help="Directory receiving the assignment and catalog JSON files.",
    )
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    parser.add_argument("--batch-delay-seconds", type=float, default=DEFAULT_BATCH_DELAY_SECONDS)
    parser.add_argument("--chunk-timeout-seconds", type=float, default=DEFAULT_CHUNK_TIMEOUT_SECONDS)
    parser.add_argument("--pages-per-chunk", type=int, default=DEFAULT_PAGES_PER_CHUNK)
    parser.add_argument("--progress-queue-size", type=int, default=DEFAULT_PROGRESS_QUEUE_SIZE)
    parser.add_argument(
        "--ollama-model",
        default=DEFAULT_OLLAMA_MODEL,
        help="Ollama model identifier used for amenity cleanup and descriptions.",
    )
    parser.add_argument(
        "--ollama-base-url",
        default=DEFAULT_OLLAMA_BASE_URL,
        help="Base URL for the local Ollama server.",
    )
    parser.add_argument(
        "--llm-enabled",
        dest="llm_enabled",
        action="store_true",
        default=DEFAULT_LLM_ENABLED,
        help="Use the Ollama model for amenity cleanup and descriptions.",
    )
    parser.add_argument(
        "--llm-disabled",
        dest="llm_enabled",
        action="store_false",
        help="Use the rule-based fallbacks only.",
    )
    parser.add_argument(
        "--temporal",
        action="store_true",
        help="Submit the job to a Temporal worker instead of running it in-process.",
    )
    parser.add_argument("--address", default=DEFAULT_TEMPORAL_ADDRESS)
    parser.add_argument("--namespace", default=DEFAULT_TEMPORAL_NAMESPACE)
    parser.add_argument("--task-queue", default=DEFAULT_TEMPORAL_TASK_QUEUE)
    parser.add_argument("--workflow-id-prefix", default=None)
    parser.add_argument(
        "--split-pdf",
        default=None,
        metavar="PDF",
        help="Split a brochure PDF into page-range chunks under <output-dir>/chunks and exit.",
    )
    parser.add_argument("--plain", action="store_true", help="Print plain text instead of Rich panels.")
    parser.add_argument("--log-level", default=os.environ.get("BROCHURE_LOG_LEVEL", "WARNING"))
    return parser


def temporal_ui_url(address: str, namespace: str) -> Optional[str]:
    """Return the Temporal UI base URL for a given address/namespace."""

    if not address:
        return None

    if "://" in address:
        host = urlparse(address).hostname or ""
    else:
        host = address.split(":")[0]

    if not host:
        return None

    return f"http://{host}:8233/namespaces/{namespace}/workflows"


def workflow_history_url(base_url: str, workflow_id: str, run_id: Optional[str] = None) -> str:
    """Compose a Temporal history view URL for the workflow/run pair."""

    url = f"{base_url}/{workflow_id}"
    if run_id:
        url += f"/{run_id}/history"
    return url


__all__ = [
    "CLITheme",
    "DEFAULT_THEME",
    "build_main_cli_parser",
    "build_result_renderable",
    "configure_logging",
    "emit_plain_result",
    "format_progress_line",
    "get_console",
    "stage_style",
    "temporal_ui_url",
    "workflow_history_url",
]
