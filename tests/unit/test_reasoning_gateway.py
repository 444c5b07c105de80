"""Unit tests for the reasoning gateway: routing, fallback and degraded replies."""

import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from agentforge.config.settings import ReasoningSettings
from agentforge.gateway.reasoning import (
    AI_DISABLED_REASON,
    FALLBACK_RESPONSE,
    CompletionOptions,
    ReasoningGateway,
    to_langchain_messages,
)
from agentforge.models import build_default_registry
from agentforge.utils.error_handler import RateLimitError

MESSAGES = [
    {"role": "system", "content": "You are helpful."},
    {"role": "user", "content": "Say hi"},
]


def _registry(openai_key="test-openai-key", claude_key="test-claude-key"):
    return build_default_registry({
        "openai": {"id": "gpt-test", "api_key": openai_key, "base_url": None},
        "claude": {"id": "claude-test", "api_key": claude_key, "base_url": None},
    })


class TestMessageConversion:

    def test_roles_map_to_langchain_messages(self):
        converted = to_langchain_messages(MESSAGES + [{"role": "assistant", "content": "Hi!"}])

        assert isinstance(converted[0], SystemMessage)
        assert isinstance(converted[1], HumanMessage)
        assert isinstance(converted[2], AIMessage)
        assert converted[1].content == "Say hi"

    def test_unknown_role_raises(self):
        with pytest.raises(ValueError, match="Unsupported message role"):
            to_langchain_messages([{"role": "tool", "content": "x"}])


class TestReasoningGateway:
    """Provider routing and failure absorption."""

    @pytest.mark.asyncio
    async def test_primary_provider_answers(self, gateway, resolver):
        resolver.script("openai", "Hello there")

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.text == "Hello there"
        assert reply.provider == "openai"
        assert reply.model == gateway.registry.get("openai").model_id
        assert reply.degraded is False
        assert reply.error is None
        assert reply.duration_ms >= 0
        assert [call["provider"] for call in resolver.calls] == ["openai"]

    @pytest.mark.asyncio
    async def test_messages_reach_the_model(self, gateway, resolver):
        resolver.script("openai", "ok")

        await gateway.complete(MESSAGES)

        sent = resolver.calls[0]["messages"]
        assert isinstance(sent[0], SystemMessage)
        assert sent[1].content == "Say hi"

    @pytest.mark.asyncio
    async def test_falls_back_once_on_failure(self, gateway, resolver):
        resolver.script("openai", RuntimeError("503 Service Unavailable"))
        resolver.script("claude", "Fallback answer")

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.text == "Fallback answer"
        assert reply.provider == "claude"
        assert reply.degraded is False
        assert [call["provider"] for call in resolver.calls] == ["openai", "claude"]

    @pytest.mark.asyncio
    async def test_all_providers_failing_returns_fallback_reply(self, gateway, resolver):
        resolver.script("openai", RuntimeError("boom"))
        resolver.script("claude", RuntimeError("Error code: 429 rate_limit_exceeded"))

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.text == FALLBACK_RESPONSE
        assert reply.degraded is True
        assert reply.error == "Reasoning provider rate limit exceeded"
        assert await gateway.complete(MESSAGES) == FALLBACK_RESPONSE

    @pytest.mark.asyncio
    async def test_rate_limited_call_raises_rate_limit_error(self, gateway, resolver):
        upstream = RuntimeError("Error code: 429 rate_limit_exceeded")
        resolver.script("openai", upstream)

        with pytest.raises(RateLimitError) as excinfo:
            await gateway._invoke("openai", to_langchain_messages(MESSAGES), CompletionOptions(), None)

        assert excinfo.value.__cause__ is upstream

    @pytest.mark.asyncio
    async def test_status_code_429_counts_as_rate_limit(self, gateway, resolver):
        upstream = RuntimeError("Too Many Requests")
        upstream.status_code = 429
        resolver.script("openai", upstream)
        resolver.script("claude", upstream)

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.error == "Reasoning provider rate limit exceeded"

    @pytest.mark.asyncio
    async def test_timeout_is_absorbed(self, gateway, resolver):
        resolver.script("openai", asyncio.TimeoutError())
        resolver.script("claude", asyncio.TimeoutError())

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.degraded is True
        assert reply.error == "Reasoning provider timed out"

    @pytest.mark.asyncio
    async def test_empty_response_counts_as_failure(self, gateway, resolver):
        resolver.script("openai", "   ")
        resolver.script("claude", "Real answer")

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.text == "Real answer"
        assert reply.provider == "claude"

    @pytest.mark.asyncio
    async def test_ai_disabled_skips_providers(self, resolver):
        settings = ReasoningSettings(AI_ENABLED=False, OPENAI_API_KEY="k")
        gateway = ReasoningGateway(settings, _registry(), resolver)

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.text == FALLBACK_RESPONSE
        assert reply.degraded is True
        assert reply.error == AI_DISABLED_REASON
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_unconfigured_primary_falls_back(self, reasoning_settings, resolver):
        gateway = ReasoningGateway(reasoning_settings, _registry(openai_key=None), resolver)
        resolver.script("claude", "From claude")

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.provider == "claude"
        assert [call["provider"] for call in resolver.calls] == ["claude"]

    @pytest.mark.asyncio
    async def test_unconfigured_fallback_is_skipped(self, reasoning_settings, resolver):
        gateway = ReasoningGateway(reasoning_settings, _registry(claude_key=None), resolver)
        resolver.script("openai", RuntimeError("down"))

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.degraded is True
        assert [call["provider"] for call in resolver.calls] == ["openai"]

    @pytest.mark.asyncio
    async def test_fallback_equal_to_primary_is_tried_once(self, resolver):
        settings = ReasoningSettings(
            DEFAULT_LLM_PROVIDER="openai", FALLBACK_LLM_PROVIDER="openai", OPENAI_API_KEY="k"
        )
        gateway = ReasoningGateway(settings, _registry(), resolver)
        resolver.script("openai", RuntimeError("down"))

        reply = await gateway.complete_reply(MESSAGES)

        assert reply.degraded is True
        assert len(resolver.calls) == 1

    @pytest.mark.asyncio
    async def test_requested_provider_and_options(self, gateway, resolver):
        resolver.script("claude", "ok")

        await gateway.complete_reply(
            MESSAGES,
            CompletionOptions(provider="claude", model="claude-custom", temperature=0.1, max_tokens=300),
        )

        assert resolver.calls[0] == {
            "provider": "claude",
            "model": "claude-custom",
            "temperature": 0.1,
            "max_tokens": 300,
            "messages": resolver.calls[0]["messages"],
        }

    @pytest.mark.asyncio
    async def test_model_override_only_applies_to_requested_provider(self, gateway, resolver):
        resolver.script("openai", RuntimeError("down"))
        resolver.script("claude", "ok")

        reply = await gateway.complete_reply(MESSAGES, CompletionOptions(model="gpt-custom"))

        assert resolver.calls[0]["model"] == "gpt-custom"
        assert resolver.calls[1]["model"] == gateway.registry.get("claude").model_id
        assert reply.model == gateway.registry.get("claude").model_id

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, gateway, resolver):
        resolver.script("openai", asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await gateway.complete_reply(MESSAGES)
