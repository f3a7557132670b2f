"""Workflow API routes - run the documentation pipeline, optionally as SSE."""

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from gitscribe.api.dependencies import get_workflow_use_case, limiter, rate_limit
from gitscribe.application.workflow.dto import WorkflowRequest, WorkflowResponse
from gitscribe.application.workflow.use_case import WorkflowUseCase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflow", tags=["workflow"])


async def _sse_events(use_case: WorkflowUseCase, workflow_request: WorkflowRequest) -> AsyncIterator[dict]:
    """step/progress events, then done or error, then close."""
    try:
        async for event in use_case.execute_stream(workflow_request):
            yield {"event": event.event_type.value, "data": event.model_dump_json()}
    except Exception:
        logger.exception("Workflow stream failed for %d repositories", len(workflow_request.repos))
        yield {"event": "error", "data": "Stream failed"}
    yield {"event": "close", "data": ""}


@router.post("", response_model=None)
@limiter.limit(rate_limit)
async def run_workflow(
    request: Request,
    workflow_request: WorkflowRequest,
    stream: bool = False,
    use_case: WorkflowUseCase = Depends(get_workflow_use_case),
) -> WorkflowResponse | EventSourceResponse:
    """Document the requested repositories. stream=true switches to server-sent events."""
    if stream:
        return EventSourceResponse(_sse_events(use_case, workflow_request))
    try:
        response = await use_case.execute(workflow_request)
    except Exception:
        logger.exception("Workflow execution failed for %d repositories", len(workflow_request.repos))
        raise HTTPException(status_code=500, detail="Workflow execution failed")
    if response.errors:
        logger.warning("Workflow finished with %d errors: %s", len(response.errors), sorted(response.errors))
    return response
