"""Error taxonomy for the research pipeline."""
from __future__ import annotations

GENERIC_FAILURE_MESSAGE = "Failed to generate brief. Please try again."


class ConfigurationError(RuntimeError):
    """A required provider key or option is missing."""


class ProviderError(RuntimeError):
    """Base class for failures talking to an external provider."""


class TransientProviderError(ProviderError):
    """A single attempt failed (timeout, non-2xx status, empty body)."""


class TerminalProviderError(ProviderError):
    """The provider call failed for good; retries, if any, are exhausted."""


class ProviderParseError(ProviderError):
    """The provider answered but its body is not a usable JSON object."""


class ReconciliationError(RuntimeError):
    """The candidate brief could not be repaired into a schema-valid brief."""


class PipelineError(RuntimeError):
    """Raised by run_research_pipeline for any failed invocation."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause

    def user_message(self, *, production: bool) -> str:
        if production:
            return GENERIC_FAILURE_MESSAGE
        return str(self)
