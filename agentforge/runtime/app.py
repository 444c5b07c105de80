"""Runtime assembly - builds every component once and wires them together."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from agentforge.agents import DefinitionCatalog, load_definition_catalog
from agentforge.config import Settings, get_settings
from agentforge.config.project_root import resolve_project_path
from agentforge.execution.engine import TaskExecutionEngine
from agentforge.gateway.reasoning import CompletionOptions, ReasoningGateway
from agentforge.governance.triage import ImprovementTriage
from agentforge.learning.research import LearningCycle
from agentforge.models import ModelResolver, ProviderRegistry, build_default_registry
from agentforge.persistence import CapabilityStore
from agentforge.reporting import PerformanceReporter
from agentforge.telemetry import configure_tracing
from agentforge.utils.time_utils import utc_now

from .model_resolver import build_model_resolver, resolve_provider_configs

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Application:
    """All long-lived components of one process."""

    settings: Settings
    catalog: DefinitionCatalog
    providers: ProviderRegistry
    store: CapabilityStore
    gateway: ReasoningGateway
    engine: TaskExecutionEngine
    triage: ImprovementTriage
    learning: LearningCycle
    reporter: PerformanceReporter

    def resolve_agent_id(self, reference: str) -> str:
        """Accept an agent id or a definition name and return the agent id.

        Raises:
            AgentNotFoundError: Neither an id nor a name matches
        """
        profile = self.store.find_profile_by_name(reference)
        if profile is not None:
            return profile.id
        return self.store.get_profile(reference).id


def build_application(
    settings: Optional[Settings] = None,
    *,
    model_resolver: Optional[ModelResolver] = None,
    db_path: Optional[Path | str] = None,
    catalog: Optional[DefinitionCatalog] = None,
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Application:
    """Construct the store, gateway and pipelines.

    Args:
        settings: Settings to use (default: cached get_settings())
        model_resolver: Optional custom model resolver (tests inject fakes)
        db_path: Override for the SQLite database path
        catalog: Pre-loaded definition catalog (default: load from settings)
        rng: Random source for topic and focus sampling
        clock: Current-time source for stores, triage and reports

    Returns:
        Application with every component wired by constructor injection
    """
    settings = settings or get_settings()
    configure_tracing(settings.observability)
    clock = clock or utc_now
    rng = rng or random.Random()

    if catalog is None:
        catalog_path = (
            resolve_project_path(settings.store.catalog_path) if settings.store.catalog_path else None
        )
        catalog = load_definition_catalog(catalog_path)

    store_path = Path(db_path) if db_path else resolve_project_path(settings.store.db_path)
    store = CapabilityStore(store_path, clock=clock, busy_timeout=settings.store.busy_timeout)
    LOGGER.info(f"Capability store: {store_path}")

    provider_configs = resolve_provider_configs(settings.reasoning)
    providers = build_default_registry(provider_configs)
    resolver = model_resolver or build_model_resolver(provider_configs)
    gateway = ReasoningGateway(settings.reasoning, providers, resolver)

    configured = [key for key in providers.keys() if providers.is_configured(key)]
    LOGGER.info(f"Reasoning providers configured: {configured or 'none'} (default: {settings.reasoning.default_provider})")
    if not settings.reasoning.ai_enabled:
        LOGGER.warning("AI features are disabled; every reasoning call returns the fallback reply")

    prompt_log_length = settings.observability.log_prompt_max_length

    engine = TaskExecutionEngine(
        store,
        catalog,
        gateway,
        completion_options=CompletionOptions(
            temperature=settings.reasoning.temperature,
            max_tokens=settings.reasoning.max_tokens,
        ),
        rng=rng,
        prompt_log_length=prompt_log_length,
    )
    triage = ImprovementTriage(
        store,
        reproposal_cooldown_days=settings.learning.reproposal_cooldown_days,
        clock=clock,
    )
    learning = LearningCycle(
        store,
        catalog,
        gateway,
        triage,
        completion_options=CompletionOptions(
            temperature=settings.reasoning.temperature,
            max_tokens=settings.learning.research_max_tokens,
        ),
        max_topics=settings.learning.max_topics,
        max_opportunities=settings.learning.max_opportunities,
        preview_chars=settings.learning.preview_chars,
        rng=rng,
        clock=clock,
        prompt_log_length=prompt_log_length,
    )
    reporter = PerformanceReporter(store, clock=clock)

    return Application(
        settings=settings,
        catalog=catalog,
        providers=providers,
        store=store,
        gateway=gateway,
        engine=engine,
        triage=triage,
        learning=learning,
        reporter=reporter,
    )
