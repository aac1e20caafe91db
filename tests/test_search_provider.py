from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from oppbrief.errors import (
    ConfigurationError,
    ProviderParseError,
    TerminalProviderError,
    TransientProviderError,
)
from oppbrief.tools.search_provider import SearchProvider, retry_delay


def _completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def _provider(responses, sleeps, requests=None, **kwargs) -> SearchProvider:
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    return SearchProvider(
        api_key="test-key",
        base_url="https://search.test",
        transport=httpx.MockTransport(handler),
        sleep=fake_sleep,
        **kwargs,
    )


def test_retry_delay_schedule():
    error = TransientProviderError("HTTP 500")

    assert retry_delay(0, error, 2) == 1.0
    assert retry_delay(1, error, 2) == 2.0
    assert retry_delay(2, error, 2) is None
    assert retry_delay(0, ProviderParseError("bad json"), 2) is None
    assert retry_delay(0, ConfigurationError("no key"), 2) is None


def test_missing_api_key_fails_fast():
    with pytest.raises(ConfigurationError):
        SearchProvider(api_key="")


@pytest.mark.asyncio
async def test_recovers_after_server_error_and_empty_body():
    sleeps: list[float] = []
    provider = _provider(
        [
            httpx.Response(500, text="upstream exploded"),
            httpx.Response(200, content=b""),
            _completion('{"company": {"name": "Acme"}}'),
        ],
        sleeps,
    )

    result = await provider.search_json("prompt", "system")

    assert result == {"company": {"name": "Acme"}}
    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exhausted_retries_raise_terminal_error():
    sleeps: list[float] = []
    provider = _provider([httpx.Response(503, text="busy") for _ in range(3)], sleeps)

    with pytest.raises(TerminalProviderError) as excinfo:
        await provider.search("prompt", "system")

    assert "3 attempts" in str(excinfo.value)
    assert "HTTP 503" in str(excinfo.value)
    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_connection_errors_are_retried():
    sleeps: list[float] = []
    provider = _provider(
        [httpx.ConnectError("refused"), _completion("plain answer")],
        sleeps,
    )

    assert await provider.search("prompt", "system") == "plain answer"
    assert sleeps == [1.0]


@pytest.mark.asyncio
async def test_slow_responses_time_out_and_are_retried():
    sleeps: list[float] = []
    attempts: list[httpx.Request] = []

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        await asyncio.sleep(1)
        return _completion("too late")

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    provider = SearchProvider(
        api_key="test-key",
        base_url="https://search.test",
        transport=httpx.MockTransport(slow_handler),
        sleep=fake_sleep,
    )

    with pytest.raises(TerminalProviderError, match="3 attempts: Request timed out"):
        await provider.search("prompt", "system", timeout_seconds=0.05)
    assert sleeps == [1.0, 2.0]
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt():
    sleeps: list[float] = []
    provider = _provider([httpx.Response(500)], sleeps, max_retries=0)

    with pytest.raises(TerminalProviderError, match="1 attempts"):
        await provider.search("prompt", "system")
    assert sleeps == []


@pytest.mark.asyncio
async def test_unparseable_answer_is_not_retried():
    sleeps: list[float] = []
    requests: list[httpx.Request] = []
    provider = _provider([_completion("I could not find anything.")], sleeps, requests)

    with pytest.raises(ProviderParseError):
        await provider.search_json("prompt", "system")

    assert len(requests) == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_empty_choices_are_transient():
    sleeps: list[float] = []
    provider = _provider(
        [httpx.Response(200, json={"choices": []}), _completion("{}")],
        sleeps,
    )

    assert await provider.search_json("prompt", "system") == {}
    assert sleeps == [1.0]


@pytest.mark.asyncio
async def test_request_shape():
    requests: list[httpx.Request] = []
    provider = _provider(
        [_completion("ok")],
        [],
        requests,
        model="sonar-pro",
        temperature=0.2,
    )

    await provider.search("find facts", "be precise")

    request = requests[0]
    body = json.loads(request.content)
    assert str(request.url) == "https://search.test/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    assert body["model"] == "sonar-pro"
    assert body["temperature"] == 0.2
    assert body["messages"] == [
        {"role": "system", "content": "be precise"},
        {"role": "user", "content": "find facts"},
    ]
