"""Utilities for AgentForge."""

from .logging_utils import (
    log_error,
    log_gateway_call,
    log_prompt,
    log_provider_failure,
    log_research_topic,
    log_task_execution,
    log_triage_decision,
    setup_logging,
)
from .error_handler import (
    AgentDefinitionNotFoundError,
    AgentForgeError,
    AgentNotFoundError,
    GovernanceViolationError,
    ModelInvocationError,
    ProviderNotConfiguredError,
    RateLimitError,
    ReasoningError,
    ReasoningTimeoutError,
    ReportNotFoundError,
    RequestNotFoundError,
    describe_model_error,
    is_rate_limit_error,
)

__all__ = [
    "setup_logging",
    "log_gateway_call",
    "log_provider_failure",
    "log_task_execution",
    "log_research_topic",
    "log_triage_decision",
    "log_error",
    "log_prompt",
    "AgentForgeError",
    "AgentNotFoundError",
    "AgentDefinitionNotFoundError",
    "RequestNotFoundError",
    "ReportNotFoundError",
    "GovernanceViolationError",
    "ReasoningError",
    "ModelInvocationError",
    "ReasoningTimeoutError",
    "RateLimitError",
    "ProviderNotConfiguredError",
    "describe_model_error",
    "is_rate_limit_error",
]
