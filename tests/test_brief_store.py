from __future__ import annotations

import pytest

from oppbrief.services.brief_store import InMemoryBriefStore


@pytest.mark.asyncio
async def test_save_and_load_by_slug(valid_brief):
    store = InMemoryBriefStore()

    saved = await store.save(valid_brief)

    assert len(store) == 1
    assert await store.load_by_slug(saved.share_slug) == valid_brief


@pytest.mark.asyncio
async def test_each_save_gets_its_own_slug(valid_brief):
    store = InMemoryBriefStore()

    first = await store.save(valid_brief)
    second = await store.save(valid_brief)

    assert first.share_slug != second.share_slug
    assert first.id != second.id
    assert len(store) == 2


@pytest.mark.asyncio
async def test_unknown_slug_returns_none():
    assert await InMemoryBriefStore().load_by_slug("missing") is None
