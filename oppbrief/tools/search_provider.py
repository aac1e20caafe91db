"""Web-search-capable LLM adapter (Perplexity chat completions)."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable

import httpx

from oppbrief.config import Settings, settings as default_settings
from oppbrief.errors import (
    ConfigurationError,
    ProviderParseError,
    TerminalProviderError,
    TransientProviderError,
)
from oppbrief.services.logger import log_llm_call, logger
from oppbrief.tools.json_utils import parse_json_object

Sleeper = Callable[[float], Awaitable[None]]

BACKOFF_BASE_MS = 1000


def retry_delay(attempt: int, error: Exception, max_retries: int) -> float | None:
    """Seconds to wait before the next attempt, or None to stop.

    ``attempt`` is zero-based: a failure on attempt 0 waits 1s, attempt 1 waits 2s.
    """
    if isinstance(error, (ProviderParseError, ConfigurationError)):
        return None
    if attempt >= max_retries:
        return None
    return 2**attempt * BACKOFF_BASE_MS / 1000.0


class SearchProvider:
    """Chat-completions client with per-attempt timeout and exponential backoff."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.perplexity.ai",
        model: str = "sonar-pro",
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
        temperature: float = 0.2,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleeper | None = None,
    ):
        if not api_key:
            raise ConfigurationError("PERPLEXITY_API_KEY is not configured")
        self.api_key = api_key
        self.endpoint = base_url.rstrip("/") + "/chat/completions"
        self.model = model
        self.timeout_seconds = max(float(timeout_seconds), 1.0)
        self.max_retries = max(int(max_retries), 0)
        self.temperature = temperature
        self._transport = transport
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "SearchProvider":
        config = config or default_settings
        return cls(
            api_key=config.perplexity_api_key,
            base_url=config.perplexity_base_url,
            model=config.search_model,
            timeout_seconds=config.search_timeout_seconds,
            max_retries=config.search_max_retries,
            temperature=config.search_temperature,
        )

    async def search(
        self,
        prompt: str,
        system_prompt: str,
        *,
        max_retries: int | None = None,
        timeout_seconds: float | None = None,
    ) -> str:
        """Send one prompt and return the raw completion text."""
        retries = self.max_retries if max_retries is None else max(int(max_retries), 0)
        timeout = self.timeout_seconds if timeout_seconds is None else float(timeout_seconds)
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
        }

        last_error: Exception | None = None
        attempt = 0
        while True:
            started = time.monotonic()
            try:
                text = await asyncio.wait_for(self._post(payload, timeout), timeout)
                log_llm_call(
                    model=self.model,
                    caller="search_provider",
                    duration_ms=int((time.monotonic() - started) * 1000),
                )
                return text
            except asyncio.TimeoutError:
                last_error = TransientProviderError(f"Request timed out after {timeout:.0f}s")
            except httpx.HTTPError as exc:
                last_error = TransientProviderError(f"{type(exc).__name__}: {exc}")
            except TransientProviderError as exc:
                last_error = exc

            log_llm_call(
                model=self.model,
                caller="search_provider",
                duration_ms=int((time.monotonic() - started) * 1000),
                status="failed",
                error=f"attempt {attempt + 1}/{retries + 1}: {last_error}",
            )
            delay = retry_delay(attempt, last_error, retries)
            if delay is None:
                break
            logger.warning(f"Search attempt {attempt + 1} failed, retrying in {delay:.1f}s")
            await self._sleep(delay)
            attempt += 1

        raise TerminalProviderError(
            f"Search provider failed after {attempt + 1} attempts: {last_error}"
        )

    async def search_json(self, prompt: str, system_prompt: str, **kwargs: Any) -> dict[str, Any]:
        """Search and parse the answer as a JSON object. Parse errors are not retried."""
        text = await self.search(prompt, system_prompt, **kwargs)
        return parse_json_object(text)

    async def _post(self, payload: dict[str, Any], timeout: float) -> str:
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            response = await client.post(
                self.endpoint,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        if response.status_code < 200 or response.status_code >= 300:
            raise TransientProviderError(
                f"HTTP {response.status_code}: {response.text[:200]}"
            )
        if not response.content.strip():
            raise TransientProviderError("Empty response body")

        try:
            data = response.json()
        except ValueError as exc:
            raise TransientProviderError(f"Non-JSON response body: {exc}") from exc

        choices = data.get("choices") if isinstance(data, dict) else None
        content = ""
        if isinstance(choices, list) and choices:
            first = choices[0] if isinstance(choices[0], dict) else {}
            message = first.get("message") or {}
            content = str(message.get("content") or "")
        if not content.strip():
            raise TransientProviderError("Empty completion content")
        return content
