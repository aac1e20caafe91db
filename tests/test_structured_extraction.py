from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from oppbrief.errors import ProviderParseError, TerminalProviderError
from oppbrief.tools.structured_extraction import StructuredExtractor


def _response(content, prompt_tokens=12, completion_tokens=34):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


def _client(create) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.mark.asyncio
async def test_generate_json_requests_json_mode():
    create = AsyncMock(return_value=_response('{"ceo": "Jane Roe"}'))
    extractor = StructuredExtractor(client=_client(create), model="openai/gpt-4o-mini")

    result = await extractor.generate_json("system", "user")

    assert result == {"ceo": "Jane Roe"}
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "openai/gpt-4o-mini"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["temperature"] == 0
    assert kwargs["messages"][0] == {"role": "system", "content": "system"}
    assert kwargs["messages"][1] == {"role": "user", "content": "user"}


@pytest.mark.asyncio
async def test_model_override_per_call():
    create = AsyncMock(return_value=_response("{}"))
    extractor = StructuredExtractor(client=_client(create), model="openai/gpt-4o-mini")

    await extractor.generate_json("s", "u", model="openai/gpt-5-mini")

    assert create.await_args.kwargs["model"] == "openai/gpt-5-mini"
    assert create.await_args.kwargs["temperature"] == 1


@pytest.mark.asyncio
async def test_timeout_is_terminal():
    async def slow_create(**_kwargs):
        await asyncio.sleep(1)

    extractor = StructuredExtractor(client=_client(slow_create), model="m")

    with pytest.raises(TerminalProviderError, match="timed out"):
        await extractor.generate_json("s", "u", timeout_seconds=0.01)


@pytest.mark.asyncio
async def test_api_error_is_terminal():
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    create = AsyncMock(side_effect=openai.APIConnectionError(request=request))
    extractor = StructuredExtractor(client=_client(create), model="m")

    with pytest.raises(TerminalProviderError, match="Extraction request failed"):
        await extractor.generate_json("s", "u")
    create.assert_awaited_once()


@pytest.mark.asyncio
async def test_client_side_openai_error_is_terminal():
    create = AsyncMock(side_effect=openai.OpenAIError("client has been closed"))
    extractor = StructuredExtractor(client=_client(create), model="m")

    with pytest.raises(TerminalProviderError, match="client has been closed"):
        await extractor.generate_json("s", "u")


@pytest.mark.asyncio
async def test_aclose_closes_the_client():
    client = _client(AsyncMock())
    client.close = AsyncMock()
    extractor = StructuredExtractor(client=client, model="m")

    await extractor.aclose()

    client.close.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "not json at all"])
async def test_unusable_content_is_parse_error(content):
    create = AsyncMock(return_value=_response(content))
    extractor = StructuredExtractor(client=_client(create), model="m")

    with pytest.raises(ProviderParseError):
        await extractor.generate_json("s", "u")
