"""Daily learning and research cycle.

For one agent: pick a few research topics, ask the reasoning collaborator
about each, keep the findings as learnings, score the recommendations as
improvement opportunities and hand the best ones to triage.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from agentforge.agents.registry import DefinitionCatalog
from agentforge.agents.schema import AgentDefinition, CapabilityType
from agentforge.gateway.parsing import DEFAULT_CONFIDENCE, ResearchResult, interpret_research_reply
from agentforge.gateway.reasoning import CompletionOptions, ReasoningGateway
from agentforge.governance.triage import ImprovementTriage
from agentforge.persistence.capability_store import CapabilityStore
from agentforge.persistence.records import AgentProfile, CapabilityOrigin, LearningProvenance
from agentforge.utils.error_handler import AgentDefinitionNotFoundError
from agentforge.utils.logging_utils import log_prompt, log_research_topic
from agentforge.utils.time_utils import local_midnight, utc_now

from .opportunities import ImprovementOpportunity, evaluate_recommendation

LOGGER = logging.getLogger(__name__)

RESEARCH_SYSTEM_PROMPT = (
    "You are a research assistant helping an AI agent learn and improve. "
    "Provide accurate, actionable insights."
)

MAX_FOCUS_TOPICS = 2

# Learning velocity thresholds (new capabilities acquired today)
FAST_VELOCITY = 5
MODERATE_VELOCITY = 2

# Performance analysis thresholds
EXCELLENT_SUCCESS_RATE = 90
LOW_SUCCESS_RATE = 70
HIGH_RATING = 85
LOW_RATING = 70
FAST_RESPONSE_MS = 3000
SLOW_RESPONSE_MS = 10000
EXPERIENCED_TASKS = 100
INEXPERIENCED_TASKS = 10


@dataclass(frozen=True, slots=True)
class DailyResearchOutcome:
    research_conducted: Tuple[ResearchResult, ...]
    learning_opportunities: Tuple[ImprovementOpportunity, ...]
    improvement_proposals: int


@dataclass(frozen=True, slots=True)
class PerformanceAnalysis:
    strengths: Tuple[str, ...] = field(default_factory=tuple)
    weaknesses: Tuple[str, ...] = field(default_factory=tuple)
    optimizations: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class LearningSummary:
    new_skills: int
    new_tools: int
    new_apis: int
    research_topics: int
    improvement_proposals: int
    learning_velocity: str  # slow | moderate | fast


def _num(value: float) -> str:
    return f"{round(value, 1):g}"


def build_research_prompt(profile: AgentProfile, topic: str) -> str:
    """User message asking the collaborator to research one topic for an agent."""
    return f"""You are {profile.name}, a specialized AI agent conducting research to improve your capabilities.

Research Topic: {topic}

Your Specialization: {profile.specialization}

Conduct comprehensive research on this topic and provide:
1. Key findings (3-5 important insights)
2. Actionable recommendations for improving your capabilities
3. Credible sources or references
4. Confidence level in your findings (0-100)

Focus on practical, implementable insights that will make you better at your job.

Respond in JSON format:
{{
  "findings": ["finding1", "finding2", "finding3"],
  "recommendations": ["rec1", "rec2", "rec3"],
  "sources": ["source1", "source2"],
  "confidence": 85
}}"""


class LearningCycle:
    """Research, learning persistence and opportunity scoring for agents."""

    def __init__(
        self,
        store: CapabilityStore,
        catalog: DefinitionCatalog,
        gateway: ReasoningGateway,
        triage: ImprovementTriage,
        completion_options: Optional[CompletionOptions] = None,
        max_topics: int = 3,
        max_opportunities: int = 10,
        preview_chars: int = 200,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        prompt_log_length: int = 500,
    ):
        self.store = store
        self.catalog = catalog
        self.gateway = gateway
        self.triage = triage
        self.completion_options = completion_options or CompletionOptions(max_tokens=1500)
        self.max_topics = max_topics
        self.max_opportunities = max_opportunities
        self.preview_chars = preview_chars
        self._rng = rng or random.Random()
        self._clock = clock or utc_now
        self._prompt_log_length = prompt_log_length

    def _definition_for(self, profile: AgentProfile) -> AgentDefinition:
        definition = self.catalog.get(profile.name)
        if definition is None:
            raise AgentDefinitionNotFoundError(profile.name)
        return definition

    # ========== Daily research ==========

    def select_research_topics(self, definition: AgentDefinition) -> List[str]:
        """Up to two sampled focus topics, then the category and specialization topics."""
        focus = list(definition.learning_focus)
        topics = self._rng.sample(focus, min(MAX_FOCUS_TOPICS, len(focus)))
        topics.append(f"Latest trends in {definition.category}")
        topics.append(f"Advanced techniques for {definition.specialization}")
        return topics[: self.max_topics]

    async def research_topic(self, profile: AgentProfile, topic: str) -> ResearchResult:
        """Ask the collaborator about one topic. Never raises for upstream failures."""
        prompt = build_research_prompt(profile, topic)
        log_prompt(LOGGER, "research", prompt, max_length=self._prompt_log_length)
        reply = await self.gateway.complete_reply(
            [
                {"role": "system", "content": RESEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            self.completion_options,
        )

        if reply.degraded:
            result = ResearchResult(
                topic=topic,
                findings=(f"Research error: {reply.error}",),
                recommendations=(),
                sources=(),
                confidence=DEFAULT_CONFIDENCE,
            )
        else:
            result = interpret_research_reply(topic, reply.text, preview_chars=self.preview_chars)

        log_research_topic(
            LOGGER, profile.name, topic, result.confidence, len(result.findings), len(result.recommendations)
        )
        return result

    def identify_opportunities(
        self,
        profile: AgentProfile,
        definition: AgentDefinition,
        research_results: Sequence[ResearchResult],
    ) -> List[ImprovementOpportunity]:
        """Score every recommendation; keep the most relevant ones."""
        opportunities = [
            evaluate_recommendation(
                recommendation,
                confidence=research.confidence,
                performance_rating=profile.performance_rating,
                specialization=definition.specialization,
            )
            for research in research_results
            for recommendation in research.recommendations
        ]
        opportunities.sort(key=lambda o: o.relevance, reverse=True)
        return opportunities[: self.max_opportunities]

    async def perform_daily_research(self, agent_id: str) -> DailyResearchOutcome:
        """Run one research cycle for an agent.

        Cadence (at most once a day) is the caller's responsibility.

        Raises:
            AgentNotFoundError: No agent with that id
            AgentDefinitionNotFoundError: The agent's definition is not in the catalog
        """
        profile = self.store.get_profile(agent_id)
        definition = self._definition_for(profile)

        research_results: List[ResearchResult] = []
        for topic in self.select_research_topics(definition):
            result = await self.research_topic(profile, topic)
            research_results.append(result)
            for finding in result.findings:
                self.store.append_learning(agent_id, finding, LearningProvenance.RESEARCH)

        opportunities = self.identify_opportunities(profile, definition, research_results)

        proposals = 0
        for opportunity in opportunities:
            if self.triage.propose_if_eligible(agent_id, opportunity):
                proposals += 1

        LOGGER.info(
            f"Daily research for {profile.name}: {len(research_results)} topics, "
            f"{len(opportunities)} opportunities, {proposals} proposals"
        )
        return DailyResearchOutcome(
            research_conducted=tuple(research_results),
            learning_opportunities=tuple(opportunities),
            improvement_proposals=proposals,
        )

    # ========== Analysis ==========

    def analyze_performance(self, agent_id: str) -> PerformanceAnalysis:
        """Strengths, weaknesses and suggested optimizations from the profile counters."""
        profile = self.store.get_profile(agent_id)
        strengths: List[str] = []
        weaknesses: List[str] = []
        optimizations: List[str] = []

        if profile.success_rate >= EXCELLENT_SUCCESS_RATE:
            strengths.append(f"Excellent success rate: {_num(profile.success_rate)}%")
        elif profile.success_rate < LOW_SUCCESS_RATE:
            weaknesses.append(f"Success rate below target: {_num(profile.success_rate)}%")
            optimizations.append("Review failed tasks to identify common failure patterns")

        if profile.performance_rating >= HIGH_RATING:
            strengths.append(f"High performance rating: {_num(profile.performance_rating)}/100")
        elif profile.performance_rating < LOW_RATING:
            weaknesses.append(f"Performance rating needs improvement: {_num(profile.performance_rating)}/100")
            optimizations.append("Focus on quality over speed to improve rating")

        response_ms = int(round(profile.avg_response_time))
        if profile.avg_response_time < FAST_RESPONSE_MS:
            strengths.append(f"Fast response time: {response_ms}ms")
        elif profile.avg_response_time > SLOW_RESPONSE_MS:
            weaknesses.append(f"Slow response time: {response_ms}ms")
            optimizations.append("Optimize execution logic to reduce response time")

        if profile.tasks_completed > EXPERIENCED_TASKS:
            strengths.append(f"Highly experienced: {profile.tasks_completed} tasks completed")
        elif profile.tasks_completed < INEXPERIENCED_TASKS:
            weaknesses.append(f"Limited experience: {profile.tasks_completed} tasks completed")
            optimizations.append("Gain more experience by taking on diverse tasks")

        if not optimizations:
            optimizations.append("Continue current excellent performance")
            optimizations.append("Explore advanced techniques in specialization area")

        return PerformanceAnalysis(tuple(strengths), tuple(weaknesses), tuple(optimizations))

    def generate_learning_summary(self, agent_id: str) -> LearningSummary:
        """What the agent picked up today (since local midnight)."""
        self.store.get_profile(agent_id)
        today_start = local_midnight(self._clock())

        acquired = [
            c for c in self.store.list_capabilities(agent_id)
            if c.origin == CapabilityOrigin.APPROVED_REQUEST
            and c.created_at is not None
            and c.created_at >= today_start
        ]
        new_skills = sum(1 for c in acquired if c.type == CapabilityType.SKILL)
        new_tools = sum(1 for c in acquired if c.type == CapabilityType.TOOL)
        new_apis = sum(1 for c in acquired if c.type == CapabilityType.API)

        total_new = new_skills + new_tools + new_apis
        if total_new >= FAST_VELOCITY:
            velocity = "fast"
        elif total_new >= MODERATE_VELOCITY:
            velocity = "moderate"
        else:
            velocity = "slow"

        research_learnings = self.store.list_recent_learnings(
            agent_id, today_start, provenance=LearningProvenance.RESEARCH
        )
        return LearningSummary(
            new_skills=new_skills,
            new_tools=new_tools,
            new_apis=new_apis,
            research_topics=len(research_learnings),
            improvement_proposals=len(self.store.list_pending_improvement_requests(agent_id)),
            learning_velocity=velocity,
        )
