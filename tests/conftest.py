"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
from langchain_core.messages import AIMessage

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from agentforge.agents import AgentDefinition, DefinitionCatalog  # noqa: E402
from agentforge.config.settings import ReasoningSettings  # noqa: E402
from agentforge.gateway.reasoning import ReasoningGateway  # noqa: E402
from agentforge.models import build_default_registry  # noqa: E402
from agentforge.persistence import CapabilityStore  # noqa: E402


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class ScriptedResolver:
    """Model resolver returning fake chat models with scripted replies.

    Each provider has a queue of outcomes; a string becomes an AIMessage,
    an exception instance is raised from ainvoke. The last outcome repeats
    when the queue runs dry.
    """

    def __init__(self, outcomes: Optional[Dict[str, List[object]]] = None):
        self.outcomes: Dict[str, List[object]] = {k: list(v) for k, v in (outcomes or {}).items()}
        self.calls: List[dict] = []

    def script(self, provider: str, *outcomes: object) -> None:
        self.outcomes[provider] = list(outcomes)

    def _next(self, provider: str) -> object:
        queue = self.outcomes.get(provider)
        if not queue:
            raise RuntimeError(f"No scripted reply for provider {provider}")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def __call__(self, provider, *, model=None, temperature=0.7, max_tokens=2000):
        call = {"provider": provider, "model": model, "temperature": temperature, "max_tokens": max_tokens}
        self.calls.append(call)

        async def ainvoke(messages):
            call["messages"] = messages
            outcome = self._next(provider)
            if isinstance(outcome, BaseException):
                raise outcome
            return AIMessage(content=outcome)

        chat_model = Mock()
        chat_model.ainvoke = AsyncMock(side_effect=ainvoke)
        return chat_model


EMAIL_COMPOSER = AgentDefinition(
    name="Email Composer",
    category="Communication & Correspondence",
    specialization="Professional email composition in user's tone and style",
    description="Drafts professional emails that match the user's writing style.",
    initial_skills=("Email writing", "Tone matching"),
    initial_tools=("Gmail API", "Natural language processing"),
    initial_apis=("Gmail API", "Microsoft Graph API"),
    initial_frameworks=("Sentiment analysis",),
    learning_focus=("User writing patterns", "Industry-specific terminology", "Email best practices"),
    performance_metrics=("Email acceptance rate", "Response time"),
)

MEETING_COORDINATOR = AgentDefinition(
    name="Meeting Coordinator",
    category="Communication & Correspondence",
    specialization="Calendar management and meeting scheduling optimization",
    description="Manages calendar and schedules meetings.",
    initial_skills=("Calendar management",),
    initial_tools=("Calendly",),
    initial_apis=("Google Calendar",),
    initial_frameworks=("Scheduling algorithms",),
    learning_focus=(),
    performance_metrics=("Scheduling success rate",),
)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc))


@pytest.fixture
def catalog():
    return DefinitionCatalog([EMAIL_COMPOSER, MEETING_COORDINATOR])


@pytest.fixture
def store(tmp_path, clock):
    return CapabilityStore(tmp_path / "agentforge.db", clock=clock)


@pytest.fixture
def agent(store):
    """Profile for the Email Composer definition."""
    return store.create_agent(EMAIL_COMPOSER)


@pytest.fixture
def reasoning_settings():
    return ReasoningSettings(
        AI_ENABLED=True,
        DEFAULT_LLM_PROVIDER="openai",
        FALLBACK_LLM_PROVIDER="claude",
        LLM_TIMEOUT_SECONDS=5,
        OPENAI_API_KEY="test-openai-key",
        CLAUDE_API_KEY="test-claude-key",
    )


@pytest.fixture
def resolver():
    return ScriptedResolver()


@pytest.fixture
def gateway(reasoning_settings, resolver):
    registry = build_default_registry({
        "openai": {"id": reasoning_settings.openai_model, "api_key": "test-openai-key", "base_url": None},
        "claude": {"id": reasoning_settings.claude_model, "api_key": "test-claude-key", "base_url": None},
    })
    return ReasoningGateway(reasoning_settings, registry, resolver)


@pytest.fixture
def rng():
    return random.Random(1234)
