"""Pydantic models and helpers for the LangGraph finalize pass."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

from pydantic import BaseModel, Field

from ...catalog import BulkExtraction, ProjectCatalog
from ...pages.models import AssignmentResult


class FinalizeStep(BaseModel):
    """Record of one finalize node execution."""

    label: str
    detail: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class FinalizeState(BaseModel):
    """State shared across finalize nodes."""

    assignment: AssignmentResult = Field(default_factory=AssignmentResult)
    bulk: BulkExtraction = Field(default_factory=BulkExtraction)
    catalog: Optional[ProjectCatalog] = None
    steps: List[FinalizeStep] = Field(default_factory=list)
    error: Optional[str] = None

    def to_graph_state(self) -> "FinalizeGraphState":
        """Return a LangGraph compatible dictionary."""

        return {
            "assignment": self.assignment.model_dump(),
            "bulk": self.bulk.model_dump(),
            "catalog": self.catalog.model_dump() if self.catalog is not None else None,
            "steps": [step.model_dump() for step in self.steps],
            "error": self.error,
        }

    @classmethod
    def from_graph_state(cls, state: "FinalizeGraphState") -> "FinalizeState":
        """Instantiate from a LangGraph state payload."""

        catalog = state.get("catalog")
        return cls(
            assignment=AssignmentResult.model_validate(state.get("assignment") or {}),
            bulk=BulkExtraction.model_validate(state.get("bulk") or {}),
            catalog=ProjectCatalog.model_validate(catalog) if catalog else None,
            steps=[FinalizeStep(**step) for step in state.get("steps", [])],
            error=state.get("error"),
        )


class FinalizeGraphState(TypedDict, total=False):
    """TypedDict representation consumed by LangGraph."""

    assignment: Dict[str, Any]
    bulk: Dict[str, Any]
    catalog: Optional[Dict[str, Any]]
    steps: List[Dict[str, Any]]
    error: Optional[str]
