"""Workflow engine - stage registry and AgentManager stepper."""

from gitscribe.infrastructure.workflow.graph import (
    AGENT_GRAPH,
    GraphEdge,
    StageNode,
    build_stage_registry,
    get_next_step,
)
from gitscribe.infrastructure.workflow.manager import AgentManager, run_agent_workflow

__all__ = [
    "AGENT_GRAPH",
    "AgentManager",
    "GraphEdge",
    "StageNode",
    "build_stage_registry",
    "get_next_step",
    "run_agent_workflow",
]
