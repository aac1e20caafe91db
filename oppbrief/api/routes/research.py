from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from oppbrief.agents.orchestrator import PipelineContext, run_research_pipeline
from oppbrief.api.deps import get_pipeline_context, get_store
from oppbrief.config import settings
from oppbrief.errors import ConfigurationError, PipelineError
from oppbrief.models.brief import Brief
from oppbrief.models.schemas import ErrorResponse, ResearchRequest, ResearchResponse
from oppbrief.services import logger as log_service
from oppbrief.services.brief_store import BriefStore

router = APIRouter(prefix="/api", tags=["research"])


@router.post(
    "/research",
    response_model=ResearchResponse,
    responses={502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def create_brief(
    request: ResearchRequest,
    store: BriefStore = Depends(get_store),
    context: PipelineContext = Depends(get_pipeline_context),
):
    """Run the research pipeline and persist the resulting brief."""
    log_service.log_event(
        "research_started",
        "Research started",
        company=request.name,
        website=request.website,
    )
    try:
        result = await run_research_pipeline(request.name, request.website, context=context)
    except ConfigurationError as exc:
        log_service.log_event("configuration_error", str(exc), level="error")
        raise HTTPException(status_code=503, detail="Research service is not configured")
    except PipelineError as exc:
        raise HTTPException(
            status_code=502,
            detail=exc.user_message(production=settings.is_production),
        )

    saved = await store.save(result.brief)
    log_service.log_event(
        "research_complete",
        "Research complete",
        company=request.name,
        report_id=str(saved.id),
        runtime_ms=result.runtime_ms,
    )
    return ResearchResponse(
        report_id=saved.id,
        share_slug=saved.share_slug,
        runtime_ms=result.runtime_ms,
        brief=result.brief,
    )


@router.get("/briefs/{slug}", response_model=Brief, responses={404: {"model": ErrorResponse}})
async def get_brief(slug: str, store: BriefStore = Depends(get_store)):
    brief = await store.load_by_slug(slug)
    if brief is None:
        raise HTTPException(status_code=404, detail="Brief not found")
    return brief
