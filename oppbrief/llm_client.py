"""OpenAI-compatible client factory for the structured-extraction provider."""
from __future__ import annotations

from typing import Any

from oppbrief.config import Settings, settings
from oppbrief.errors import ConfigurationError


def get_client(config: Settings | None = None) -> Any:
    """Build an AsyncOpenAI client against the configured OpenRouter endpoint.

    SDK-level retries are disabled; the extraction adapter makes one attempt per call.
    """
    from openai import AsyncOpenAI

    config = config or settings
    if not config.openrouter_api_key:
        raise ConfigurationError("OPENROUTER_API_KEY is not configured")
    base_url = config.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    return AsyncOpenAI(
        api_key=config.openrouter_api_key,
        base_url=base_url,
        max_retries=0,
    )


def get_model(config: Settings | None = None) -> str:
    """Get the active extraction model id."""
    config = config or settings
    return config.extraction_model


def temperature_for_model(model: str) -> float:
    # Some GPT-5-compatible gateways reject temperature=0.
    lowered = (model or "").lower()
    if "gpt-5" in lowered:
        return 1
    return 0
