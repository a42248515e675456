"""LangGraph node implementations for the finalize pass."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ...assignment.registry import PageRegistry
from ...processing.aggregation import assemble_project_catalog, build_project_summary
from ..description import ProjectSummary
from .state import FinalizeGraphState, FinalizeState, FinalizeStep

logger = logging.getLogger(__name__)


@dataclass
class NodeDependencies:
    """Collaborators shared across nodes."""

    registry: PageRegistry
    describe: Callable[[ProjectSummary, Optional[str]], str]
    on_step: Optional[Callable[[str, FinalizeState], None]] = None


def _notify_step(deps: NodeDependencies, label: str, state: FinalizeState) -> None:
    if deps.on_step is not None:
        deps.on_step(label, state)


def build_project_facts_node(
    deps: NodeDependencies,
) -> Callable[[FinalizeGraphState], Awaitable[FinalizeGraphState]]:
    async def _node(state: FinalizeGraphState) -> FinalizeGraphState:
        agent_state = FinalizeState.from_graph_state(state)
        agent_state.assignment = await deps.registry.aggregate_project_data()
        agent_state.steps.append(
            FinalizeStep(
                label="project_facts",
                detail=f"Resolved {len(agent_state.assignment.amenities)} amenities and "
                f"{len(agent_state.assignment.payment_plans)} payment plan(s).",
                metadata={"normalizer_calls": deps.registry.normalizer_calls},
            )
        )
        _notify_step(deps, "project_facts", agent_state)
        return agent_state.to_graph_state()

    return _node


def build_catalog_node(deps: NodeDependencies) -> Callable[[FinalizeGraphState], FinalizeGraphState]:
    def _node(state: FinalizeGraphState) -> FinalizeGraphState:
        agent_state = FinalizeState.from_graph_state(state)
        catalog = assemble_project_catalog(
            agent_state.assignment,
            agent_state.bulk,
            deps.registry.anchor_pages(),
        )
        agent_state.catalog = catalog
        matched = sum(1 for unit in catalog.units if unit.matched_bulk_unit)
        agent_state.steps.append(
            FinalizeStep(
                label="catalog",
                detail=f"Assembled {len(catalog.units)} unit(s); {matched} matched bulk specs.",
                metadata={"warnings": len(catalog.warnings)},
            )
        )
        _notify_step(deps, "catalog", agent_state)
        return agent_state.to_graph_state()

    return _node


def build_description_node(deps: NodeDependencies) -> Callable[[FinalizeGraphState], FinalizeGraphState]:
    def _node(state: FinalizeGraphState) -> FinalizeGraphState:
        agent_state = FinalizeState.from_graph_state(state)
        catalog = agent_state.catalog
        if catalog is None:
            agent_state.error = "Catalog missing before description step"
            return agent_state.to_graph_state()

        summary = build_project_summary(catalog)
        try:
            catalog.description = deps.describe(summary, catalog.description)
        except Exception as exc:  # pragma: no cover - defensive guard around custom writers
            logger.warning("Description writer failed; keeping extracted description: %s", exc)
        agent_state.steps.append(
            FinalizeStep(
                label="description",
                detail=f"Description has {len(catalog.description or '')} character(s).",
            )
        )
        _notify_step(deps, "description", agent_state)
        return agent_state.to_graph_state()

    return _node


__all__ = [
    "NodeDependencies",
    "build_catalog_node",
    "build_description_node",
    "build_project_facts_node",
]
