from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from oppbrief.models.brief import Brief


# --- Requests ---


class ResearchRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    website: str = Field(min_length=1, max_length=500)


# --- Responses ---


class ResearchResponse(BaseModel):
    report_id: UUID
    share_slug: str
    runtime_ms: int
    brief: Brief


class ErrorResponse(BaseModel):
    detail: str
