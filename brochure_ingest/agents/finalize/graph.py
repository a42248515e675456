"""LangGraph orchestration for the end-of-job finalize pass."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from langgraph.graph import END, START, StateGraph

from ...assignment.registry import PageRegistry
from ...catalog import BulkExtraction
from ..description import DescriptionWriterConfig, ProjectDescriptionWriter, ProjectSummary
from .nodes import (
    NodeDependencies,
    build_catalog_node,
    build_description_node,
    build_project_facts_node,
)
from .state import FinalizeGraphState, FinalizeState

logger = logging.getLogger(__name__)

DescriptionCallable = Callable[[ProjectSummary, Optional[str]], str]


class FinalizeAgent:
    """Resolves project facts, assembles the catalog and writes the description."""

    def __init__(
        self,
        describe_factory: Callable[[], DescriptionCallable] = ProjectDescriptionWriter,
    ) -> None:
        self._describe_factory = describe_factory

    @classmethod
    def from_config(cls, config: DescriptionWriterConfig) -> "FinalizeAgent":
        return cls(describe_factory=lambda: ProjectDescriptionWriter(config))

    def _build_graph(
        self,
        registry: PageRegistry,
        *,
        on_step: Optional[Callable[[str, FinalizeState], None]] = None,
    ):
        deps = NodeDependencies(
            registry=registry,
            describe=self._describe_factory(),
            on_step=on_step,
        )
        graph_builder = StateGraph(FinalizeGraphState)
        graph_builder.add_node("project_facts", build_project_facts_node(deps))
        graph_builder.add_node("catalog", build_catalog_node(deps))
        graph_builder.add_node("description", build_description_node(deps))
        graph_builder.add_edge(START, "project_facts")
        graph_builder.add_edge("project_facts", "catalog")
        graph_builder.add_edge("catalog", "description")
        graph_builder.add_edge("description", END)
        return graph_builder.compile()

    async def run(
        self,
        registry: PageRegistry,
        bulk: Optional[BulkExtraction] = None,
        on_step: Optional[Callable[[str, FinalizeState], None]] = None,
    ) -> FinalizeState:
        initial_state = FinalizeState(
            assignment=registry.get_assignment(),
            bulk=bulk or BulkExtraction(),
        )
        graph = self._build_graph(registry, on_step=on_step)
        result_state = await graph.ainvoke(initial_state.to_graph_state())
        final_state = FinalizeState.from_graph_state(result_state)
        logger.debug("Finalize pass completed with %d step(s)", len(final_state.steps))
        return final_state


__all__ = ["FinalizeAgent"]
