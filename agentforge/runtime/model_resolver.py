"""Default model resolver wiring using environment-derived settings.

Converts ReasoningSettings into provider configs and builds a resolver that
creates ChatOpenAI instances on demand. Both provider slots talk to
OpenAI-compatible chat endpoints; the "claude" slot points at Anthropic's
OpenAI-compatible base URL by default.

The resolver pattern allows lazy instantiation of models and supports
dependency injection for testing.
"""

from __future__ import annotations

from typing import Dict, Optional, TypedDict

from langchain_openai import ChatOpenAI

from agentforge.config.settings import ReasoningSettings
from agentforge.models import ModelResolver
from agentforge.utils.error_handler import ProviderNotConfiguredError


class ProviderConfig(TypedDict):
    id: str
    api_key: Optional[str]
    base_url: Optional[str]


def resolve_provider_configs(settings: ReasoningSettings) -> Dict[str, ProviderConfig]:
    """Build normalized provider configs (model id + credentials) from settings.

    Args:
        settings: Reasoning settings loaded from .env

    Returns:
        Dict mapping provider slot names to ProviderConfig dicts
    """

    return {
        "openai": {
            "id": settings.openai_model,
            "api_key": settings.openai_api_key,
            "base_url": settings.openai_base_url,
        },
        "claude": {
            "id": settings.claude_model,
            "api_key": settings.claude_api_key,
            "base_url": settings.claude_base_url,
        },
    }


def _chat_kwargs(
    provider: str,
    config: ProviderConfig,
    model: Optional[str],
    temperature: float,
    max_tokens: int,
) -> Dict[str, object]:
    if not config["api_key"]:
        raise ProviderNotConfiguredError(f"Reasoning provider '{provider}' has no API key configured")
    kwargs: Dict[str, object] = {
        "model": model or config["id"],
        "api_key": config["api_key"],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if config["base_url"]:
        kwargs["base_url"] = config["base_url"]
    return kwargs


def build_model_resolver(provider_configs: Dict[str, ProviderConfig]) -> ModelResolver:
    """Construct a resolver that returns ChatOpenAI-compatible clients.

    Args:
        provider_configs: Configs from resolve_provider_configs()

    Returns:
        ModelResolver: Function that takes a provider slot (plus optional model
        override and sampling options) and returns a ChatOpenAI instance

    Raises (from the resolver):
        ProviderNotConfiguredError: Unknown slot or missing API key

    Example:
        >>> resolver = build_model_resolver(resolve_provider_configs(settings.reasoning))
        >>> chat_model = resolver("openai", temperature=0.2)
    """

    def resolver(
        provider: str,
        *,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> ChatOpenAI:
        if provider not in provider_configs:
            raise ProviderNotConfiguredError(f"Reasoning provider '{provider}' is not registered")
        config = provider_configs[provider]
        return ChatOpenAI(**_chat_kwargs(provider, config, model, temperature, max_tokens))

    return resolver
