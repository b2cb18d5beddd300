"""LangGraph pipeline for LoanLens: acquire -> ingest -> descriptive_stats -> charts."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Sequence, TypedDict

from langgraph.graph import END, StateGraph

from .nodes import acquire_node, ingest_node, descriptive_stats_node, charts_node
from .core.config import Settings
from .core.constants import PHASE_ORDER
from .core.types import ChartImage, Dataset, PipelineResult, StatisticsBundle

logger = logging.getLogger(__name__)

PhaseCallback = Optional[Callable[..., None]]

_NODES = {
    "acquire": acquire_node,
    "ingest": ingest_node,
    "descriptive_stats": descriptive_stats_node,
    "charts": charts_node,
}

_SOURCE_PHASES = ("acquire", "ingest")


class PipelineState(TypedDict, total=False):
    settings: Settings
    archive: Optional[bytes]
    dataset: Dataset
    statistics: StatisticsBundle
    charts: Dict[str, ChartImage]
    breakdown_policy: str
    phase_outputs: Dict[str, Dict[str, Any]]
    callback: Optional[Callable[..., None]]


def _ordered(phases: Sequence[str]) -> list:
    unknown = [phase for phase in phases if phase not in _NODES]
    if unknown:
        raise ValueError(f"Unknown pipeline phases: {', '.join(unknown)}")
    return [phase for phase in PHASE_ORDER if phase in phases]


def build_graph(phases: Sequence[str] = PHASE_ORDER):
    ordered = _ordered(phases)
    if not ordered:
        raise ValueError("At least one pipeline phase is required")

    g = StateGraph(PipelineState)
    for phase in ordered:
        g.add_node(phase, _NODES[phase])

    g.set_entry_point(ordered[0])
    for left, right in zip(ordered, ordered[1:]):
        g.add_edge(left, right)
    g.add_edge(ordered[-1], END)
    return g.compile()


def run_pipeline(
    settings: Settings,
    *,
    phases: Sequence[str] = PHASE_ORDER,
    dataset: Optional[Dataset] = None,
    breakdown_policy: str = "drop",
    on_phase: PhaseCallback = None,
) -> PipelineResult:
    """Run the requested phases in their fixed order.

    Passing ``dataset`` skips acquisition and ingestion, which is how the API
    reuses a cached Dataset.
    """
    selected = list(phases)
    if dataset is not None:
        selected = [phase for phase in selected if phase not in _SOURCE_PHASES]

    initial_state: PipelineState = {
        "settings": settings,
        "breakdown_policy": breakdown_policy,
        "phase_outputs": {},
        "charts": {},
    }
    if dataset is not None:
        initial_state["dataset"] = dataset
    if on_phase:
        initial_state["callback"] = on_phase

    if not selected:
        final_state: Dict[str, Any] = dict(initial_state)
    else:
        logger.debug("running pipeline phases %s", ", ".join(_ordered(selected)))
        app = build_graph(selected)
        final_state = app.invoke(initial_state)

    return PipelineResult(
        phases=final_state.get("phase_outputs", {}) or {},
        dataset=final_state.get("dataset"),
        statistics=final_state.get("statistics"),
        charts=final_state.get("charts", {}) or {},
    )
