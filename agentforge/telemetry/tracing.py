"""LangSmith tracing of reasoning calls."""

from __future__ import annotations

import logging
import os

from agentforge.config.settings import ObservabilitySettings

LOGGER = logging.getLogger(__name__)

# settings attribute -> variable read by LangChain's tracer
_EXPORTED_VARIABLES = (
    ("langsmith_project", "LANGCHAIN_PROJECT"),
    ("langsmith_api_key", "LANGCHAIN_API_KEY"),
    ("langsmith_endpoint", "LANGCHAIN_ENDPOINT"),
)


def configure_tracing(settings: ObservabilitySettings) -> bool:
    """Export LangSmith variables for gateway calls.

    Returns:
        True if tracing is enabled
    """
    for attribute, variable in _EXPORTED_VARIABLES:
        value = getattr(settings, attribute)
        if value:
            os.environ[variable] = value

    if not settings.tracing_enabled:
        return False

    os.environ["LANGCHAIN_TRACING_V2"] = "true"
    LOGGER.info(f"LangSmith tracing enabled for reasoning calls (project: {settings.langsmith_project or 'default'})")
    return True
