from __future__ import annotations

from typing import AsyncGenerator

from fastapi import HTTPException

from oppbrief.agents.orchestrator import PipelineContext, build_context, close_context
from oppbrief.config import settings
from oppbrief.errors import ConfigurationError
from oppbrief.services import logger as log_service
from oppbrief.services.brief_store import BriefStore, InMemoryBriefStore

_store = InMemoryBriefStore()


def get_store() -> BriefStore:
    """Brief store shared by the API process."""
    return _store


async def get_pipeline_context() -> AsyncGenerator[PipelineContext, None]:
    """Fresh provider context per request, closed when the request finishes.

    Missing provider keys surface as 503 before any research starts.
    """
    try:
        context = build_context(settings)
    except ConfigurationError as exc:
        log_service.log_event("configuration_error", str(exc), level="error")
        raise HTTPException(status_code=503, detail="Research service is not configured")

    try:
        yield context
    finally:
        await close_context(context)
