"""LangGraph-backed finalize pass."""

from .graph import FinalizeAgent
from .state import FinalizeGraphState, FinalizeState, FinalizeStep

__all__ = [
    "FinalizeAgent",
    "FinalizeGraphState",
    "FinalizeState",
    "FinalizeStep",
]
