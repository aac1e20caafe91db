"""JSON-mode LLM adapter used for structured extraction."""
from __future__ import annotations

import asyncio
import time
from typing import Any

from openai import OpenAIError

from oppbrief.config import Settings, settings as default_settings
from oppbrief.errors import ProviderParseError, TerminalProviderError
from oppbrief.llm_client import get_client, get_model, temperature_for_model
from oppbrief.services.logger import log_llm_call
from oppbrief.tools.json_utils import parse_json_object


class StructuredExtractor:
    """Single-attempt JSON extraction. Retrying is the caller's decision."""

    def __init__(
        self,
        *,
        client: Any,
        model: str,
        timeout_seconds: float = 60.0,
    ):
        self._client = client
        self.model = model
        self.timeout_seconds = max(float(timeout_seconds), 1.0)

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "StructuredExtractor":
        config = config or default_settings
        return cls(
            client=get_client(config),
            model=get_model(config),
            timeout_seconds=config.extraction_timeout_seconds,
        )

    async def aclose(self) -> None:
        await self._client.close()

    async def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        timeout_seconds: float | None = None,
        model: str | None = None,
        caller: str = "structured_extraction",
    ) -> dict[str, Any]:
        model = model or self.model
        timeout = self.timeout_seconds if timeout_seconds is None else float(timeout_seconds)
        started = time.monotonic()

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    response_format={"type": "json_object"},
                    temperature=temperature_for_model(model),
                ),
                timeout,
            )
        except asyncio.TimeoutError as exc:
            message = f"Extraction timed out after {timeout:.0f}s"
            log_llm_call(model=model, caller=caller, status="failed", error=message,
                         duration_ms=int((time.monotonic() - started) * 1000))
            raise TerminalProviderError(message) from exc
        except OpenAIError as exc:
            message = f"Extraction request failed: {exc}"
            log_llm_call(model=model, caller=caller, status="failed", error=message,
                         duration_ms=int((time.monotonic() - started) * 1000))
            raise TerminalProviderError(message) from exc

        usage = getattr(response, "usage", None)
        log_llm_call(
            model=model,
            caller=caller,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

        choices = getattr(response, "choices", None) or []
        content = ""
        if choices:
            content = getattr(choices[0].message, "content", None) or ""
        if not content.strip():
            raise ProviderParseError("Extraction provider returned an empty message")
        return parse_json_object(content)
