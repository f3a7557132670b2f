"""Workflow application layer."""

from gitscribe.application.workflow.dto import (
    WorkflowRequest,
    WorkflowResponse,
    WorkflowStreamEvent,
)
from gitscribe.application.workflow.use_case import WorkflowUseCase, state_to_response

__all__ = [
    "WorkflowRequest",
    "WorkflowResponse",
    "WorkflowStreamEvent",
    "WorkflowUseCase",
    "state_to_response",
]
