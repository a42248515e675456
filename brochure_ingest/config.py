"""Application configuration dataclasses."""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from pydantic.dataclasses import dataclass

DEFAULT_RECORDS_DIR = os.environ.get("BROCHURE_RECORDS_DIR", "records")
DEFAULT_OUTPUT_DIR = os.environ.get("BROCHURE_OUTPUT_DIR", "output")
DEFAULT_TEMPORAL_ADDRESS = os.environ.get("BROCHURE_TEMPORAL_ADDRESS", "127.0.0.1:7233")
DEFAULT_TEMPORAL_NAMESPACE = os.environ.get("BROCHURE_TEMPORAL_NAMESPACE", "default")
DEFAULT_TEMPORAL_TASK_QUEUE = os.environ.get("BROCHURE_TEMPORAL_TASK_QUEUE", "brochure-ingest")
DEFAULT_WORKFLOW_ID_PREFIX: Optional[str] = None
DEFAULT_OLLAMA_MODEL = os.environ.get("BROCHURE_OLLAMA_MODEL", "qwen3:4b")
DEFAULT_OLLAMA_BASE_URL = os.environ.get("BROCHURE_OLLAMA_BASE_URL", "http://127.0.0.1:11434")
DEFAULT_LLM_TEMPERATURE = float(os.environ.get("BROCHURE_LLM_TEMPERATURE", "0.0"))
DEFAULT_LLM_ENABLED = os.environ.get("BROCHURE_LLM_ENABLED", "1").lower() not in {
    "0",
    "false",
    "no",
}
DEFAULT_BATCH_SIZE = int(os.environ.get("BROCHURE_BATCH_SIZE", "10"))
DEFAULT_BATCH_DELAY_SECONDS = float(os.environ.get("BROCHURE_BATCH_DELAY_SECONDS", "1.0"))
DEFAULT_CHUNK_TIMEOUT_SECONDS = float(os.environ.get("BROCHURE_CHUNK_TIMEOUT_SECONDS", "300"))
DEFAULT_PAGES_PER_CHUNK = int(os.environ.get("BROCHURE_PAGES_PER_CHUNK", "5"))
DEFAULT_PROGRESS_QUEUE_SIZE = int(os.environ.get("BROCHURE_PROGRESS_QUEUE_SIZE", "16"))


@dataclass
class JobConfig:
    """Typed configuration for one brochure ingestion job."""

    records_dir: str = DEFAULT_RECORDS_DIR
    output_dir: str = DEFAULT_OUTPUT_DIR
    address: str = DEFAULT_TEMPORAL_ADDRESS
    namespace: str = DEFAULT_TEMPORAL_NAMESPACE
    task_queue: str = DEFAULT_TEMPORAL_TASK_QUEUE
    workflow_id_prefix: Optional[str] = DEFAULT_WORKFLOW_ID_PREFIX
    ollama_model: str = DEFAULT_OLLAMA_MODEL
    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL
    temperature: float = DEFAULT_LLM_TEMPERATURE
    llm_enabled: bool = DEFAULT_LLM_ENABLED
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS
    chunk_timeout_seconds: float = DEFAULT_CHUNK_TIMEOUT_SECONDS
    pages_per_chunk: int = DEFAULT_PAGES_PER_CHUNK
    progress_queue_size: int = DEFAULT_PROGRESS_QUEUE_SIZE

    def to_activity_payload(self) -> Dict[str, Any]:
        """Return a dict compatible with activity execution."""

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

    @classmethod
    def from_activity_payload(cls, payload: Dict[str, Any]) -> "JobConfig":
        known = {name: value for name, value in payload.items() if name in cls.__dataclass_fields__}
        return cls(**known)

    def workflow_id_prefix_value(self) -> str:
        """Return a sanitized workflow ID prefix."""

        prefix = (self.workflow_id_prefix or "brochure").strip() or "brochure"
        return prefix

    def copy(self, **updates: Any) -> "JobConfig":
        """Return a shallow copy with optional overrides."""

        values = {name: getattr(self, name) for name in self.__dataclass_fields__}
        values.update(updates)
        return JobConfig(**values)
