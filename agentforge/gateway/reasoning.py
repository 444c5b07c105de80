"""Reasoning gateway - the single door to the external text-generation collaborator.

The gateway turns role-tagged message dicts into LangChain messages, calls the
requested (or default) provider with a timeout, falls back once to the
configured fallback provider, and absorbs every upstream failure into a fixed
fallback reply.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from agentforge.config.settings import ReasoningSettings
from agentforge.models import ModelResolver, ProviderRegistry
from agentforge.utils.error_handler import (
    ModelInvocationError,
    ProviderNotConfiguredError,
    RateLimitError,
    ReasoningTimeoutError,
    describe_model_error,
    is_rate_limit_error,
)
from agentforge.utils.logging_utils import log_gateway_call, log_provider_failure

LOGGER = logging.getLogger(__name__)

FALLBACK_RESPONSE = (
    "I'm currently experiencing technical difficulties. Please try again in a moment, "
    "or contact support if the issue persists."
)

AI_DISABLED_REASON = "AI features are disabled"

_ROLE_TO_MESSAGE = {
    "system": SystemMessage,
    "user": HumanMessage,
    "human": HumanMessage,
    "assistant": AIMessage,
    "ai": AIMessage,
}


@dataclass(frozen=True, slots=True)
class CompletionOptions:
    """Per-call overrides; None means "use the configured default"."""

    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ReasoningReply:
    """A gateway reply with call metadata.

    degraded is True when ``text`` is the fallback response rather than a
    provider answer; ``error`` then holds the reason of the last failure.
    """

    text: str
    provider: Optional[str]
    model: Optional[str]
    degraded: bool
    error: Optional[str]
    duration_ms: float


def to_langchain_messages(messages: Sequence[Dict[str, str]]) -> List[BaseMessage]:
    """Convert ``{"role", "content"}`` dicts to LangChain messages.

    Raises:
        ValueError: Unknown role
    """
    converted: List[BaseMessage] = []
    for message in messages:
        role = str(message.get("role", "")).lower()
        message_cls = _ROLE_TO_MESSAGE.get(role)
        if message_cls is None:
            raise ValueError(f"Unsupported message role: {message.get('role')!r}")
        converted.append(message_cls(content=str(message.get("content", ""))))
    return converted


def _content_text(content: Any) -> str:
    """Flatten AIMessage content (string or list of content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return "" if content is None else str(content)


class ReasoningGateway:
    """Provider routing with timeout, one fallback and a fixed degraded reply."""

    def __init__(
        self,
        settings: ReasoningSettings,
        registry: ProviderRegistry,
        resolver: ModelResolver,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.registry = registry
        self.resolver = resolver
        self._timer = timer

    def _attempt_order(self, requested: Optional[str]) -> List[str]:
        primary = requested or self.settings.default_provider
        attempts = [primary]
        fallback = self.settings.fallback_provider
        if fallback and fallback != primary and self.registry.is_configured(fallback):
            attempts.append(fallback)
        return attempts

    async def _invoke(
        self,
        provider: str,
        messages: List[BaseMessage],
        options: CompletionOptions,
        model_override: Optional[str],
    ) -> tuple[str, str]:
        try:
            spec = self.registry.get(provider)
        except KeyError as exc:
            raise ProviderNotConfiguredError(str(exc)) from exc
        if not spec.configured:
            raise ProviderNotConfiguredError(f"Reasoning provider '{provider}' has no API key configured")

        model_id = model_override or spec.model_id
        chat_model = self.resolver(
            provider,
            model=model_id,
            temperature=self.settings.temperature if options.temperature is None else options.temperature,
            max_tokens=self.settings.max_tokens if options.max_tokens is None else options.max_tokens,
        )

        log_gateway_call(LOGGER, provider, model_id, len(messages))
        try:
            response = await asyncio.wait_for(
                chat_model.ainvoke(messages),
                timeout=self.settings.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ReasoningTimeoutError(
                f"Reasoning provider '{provider}' did not answer within {self.settings.timeout_seconds}s"
            ) from exc
        except Exception as exc:
            if is_rate_limit_error(exc):
                raise RateLimitError(f"Reasoning provider '{provider}' is rate limited: {exc}") from exc
            raise

        text = _content_text(getattr(response, "content", response))
        if not text.strip():
            raise ModelInvocationError(f"Reasoning provider '{provider}' returned an empty response")
        return text, model_id

    async def complete_reply(
        self,
        messages: Sequence[Dict[str, str]],
        options: Optional[CompletionOptions] = None,
    ) -> ReasoningReply:
        """Send a conversation and return the reply with call metadata.

        Never raises for upstream failures; a malformed message list
        (unknown role) raises ValueError.
        """
        options = options or CompletionOptions()
        lc_messages = to_langchain_messages(messages)
        start = self._timer()

        def elapsed() -> float:
            return max(0.0, (self._timer() - start) * 1000)

        if not self.settings.ai_enabled:
            LOGGER.info("Reasoning call skipped: AI features are disabled")
            return ReasoningReply(FALLBACK_RESPONSE, None, None, True, AI_DISABLED_REASON, elapsed())

        attempts = self._attempt_order(options.provider)
        last_error = "No reasoning provider available"

        for index, provider in enumerate(attempts):
            # A model override targets the requested provider only
            model_override = options.model if index == 0 else None
            try:
                text, model_id = await self._invoke(provider, lc_messages, options, model_override)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # upstream failures are absorbed here
                last_error = describe_model_error(exc)
                log_provider_failure(LOGGER, provider, last_error, will_fallback=index + 1 < len(attempts))
                continue

            duration_ms = elapsed()
            log_gateway_call(LOGGER, provider, model_id, len(lc_messages), duration_ms=duration_ms)
            return ReasoningReply(text, provider, model_id, False, None, duration_ms)

        LOGGER.error(f"All reasoning providers failed: {last_error}")
        return ReasoningReply(FALLBACK_RESPONSE, None, None, True, last_error, elapsed())

    async def complete(
        self,
        messages: Sequence[Dict[str, str]],
        options: Optional[CompletionOptions] = None,
    ) -> str:
        """Send a conversation and return the reply text (or FALLBACK_RESPONSE)."""
        reply = await self.complete_reply(messages, options)
        return reply.text
