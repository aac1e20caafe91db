"""Persistence collaborator for finished briefs."""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from oppbrief.models.brief import Brief
from oppbrief.services.logger import logger


@dataclass(frozen=True, slots=True)
class SavedBrief:
    id: UUID
    share_slug: str


class BriefStore(Protocol):
    async def save(self, brief: Brief) -> SavedBrief: ...

    async def load_by_slug(self, slug: str) -> Brief | None: ...


class InMemoryBriefStore:
    """Process-local store keyed by an opaque share slug."""

    def __init__(self, *, slug_bytes: int = 9):
        self._by_slug: dict[str, tuple[UUID, Brief]] = {}
        self._slug_bytes = slug_bytes

    def __len__(self) -> int:
        return len(self._by_slug)

    async def save(self, brief: Brief) -> SavedBrief:
        slug = secrets.token_urlsafe(self._slug_bytes)
        while slug in self._by_slug:
            slug = secrets.token_urlsafe(self._slug_bytes)
        brief_id = uuid4()
        self._by_slug[slug] = (brief_id, brief)
        logger.info(f"Saved brief {brief_id} for {brief.company.name} as {slug}")
        return SavedBrief(id=brief_id, share_slug=slug)

    async def load_by_slug(self, slug: str) -> Brief | None:
        entry = self._by_slug.get(slug)
        return entry[1] if entry else None
