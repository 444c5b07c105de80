"""Unified error types for AgentForge components."""

from __future__ import annotations

import asyncio
import logging

LOGGER = logging.getLogger(__name__)


class AgentForgeError(Exception):
    """Base exception for AgentForge errors."""

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or message


# ========== Not-found errors (fatal, propagated to the caller) ==========


class AgentNotFoundError(AgentForgeError, LookupError):
    """No agent profile exists for the given id or name."""

    def __init__(self, agent_id: str):
        super().__init__(f"Agent not found: {agent_id}")
        self.agent_id = agent_id


class AgentDefinitionNotFoundError(AgentForgeError, LookupError):
    """The profile references a definition missing from the catalog."""

    def __init__(self, name: str):
        super().__init__(f"Agent definition not found: {name}")
        self.name = name


class RequestNotFoundError(AgentForgeError, LookupError):
    """No improvement request exists for the given id."""

    def __init__(self, request_id: str):
        super().__init__(f"Improvement request not found: {request_id}")
        self.request_id = request_id


class ReportNotFoundError(AgentForgeError, LookupError):
    """No saved daily report exists for the agent and date."""

    def __init__(self, agent_id: str, report_date: str):
        super().__init__(f"Daily report not found: {agent_id} {report_date}")
        self.agent_id = agent_id
        self.report_date = report_date


# ========== Contract errors ==========


class GovernanceViolationError(AgentForgeError):
    """A capability change without an approved request, or a second review."""
    pass


# ========== Upstream reasoning failures (always absorbed by the gateway) ==========


class ReasoningError(AgentForgeError):
    """Base class for provider call failures."""
    pass


class ModelInvocationError(ReasoningError):
    """Provider returned an error or an unusable response."""
    pass


class ReasoningTimeoutError(ReasoningError):
    """Provider did not answer within the configured timeout."""
    pass


class RateLimitError(ReasoningError):
    """Provider rejected the call because of rate limiting."""
    pass


class ProviderNotConfiguredError(ReasoningError):
    """Provider slot has no credentials or is unknown."""
    pass


def is_rate_limit_error(error: BaseException) -> bool:
    """Whether a provider exception signals rate limiting (HTTP 429)."""
    if isinstance(error, RateLimitError) or getattr(error, "status_code", None) == 429:
        return True
    error_str = str(error).lower()
    return "rate_limit" in error_str or "rate limit" in error_str or "429" in error_str


def describe_model_error(error: BaseException) -> str:
    """Convert provider invocation errors to a short, human readable reason.

    Args:
        error: Exception raised during model invocation

    Returns:
        Reason string suitable for result payloads and logs
    """
    if isinstance(error, (asyncio.TimeoutError, ReasoningTimeoutError)):
        return "Reasoning provider timed out"
    if isinstance(error, ProviderNotConfiguredError):
        return str(error)
    if is_rate_limit_error(error):
        return "Reasoning provider rate limit exceeded"

    error_str = str(error).lower()

    if "timeout" in error_str or "timed out" in error_str:
        return "Reasoning provider timed out"

    if "context_length" in error_str or "maximum context" in error_str:
        return "Prompt exceeds the provider context window"

    if "invalid_api_key" in error_str or "authentication" in error_str or "401" in error_str:
        return "Reasoning provider rejected the API key"

    if "quota" in error_str or "insufficient" in error_str:
        return "Reasoning provider quota exhausted"

    return f"Reasoning provider unavailable: {error}"
