"""Scoring of research recommendations as improvement opportunities.

Keyword matching is only used to pick an OpportunityType (plus cost and risk
cues); every later decision dispatches on that enum through explicit tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from agentforge.persistence.records import Level


class OpportunityType(str, Enum):
    SKILL = "skill"
    TOOL = "tool"
    API = "api"
    FRAMEWORK = "framework"
    BEST_PRACTICE = "best_practice"


# Checked in order; first match wins, no match means BEST_PRACTICE
TYPE_KEYWORDS: Tuple[Tuple[OpportunityType, Tuple[str, ...]], ...] = (
    (OpportunityType.API, ("api", "integration")),
    (OpportunityType.TOOL, ("tool", "software")),
    (OpportunityType.SKILL, ("skill", "learn")),
    (OpportunityType.FRAMEWORK, ("framework", "methodology")),
)

LOW_COST_CUES = ("simple", "quick", "easy")
HIGH_COST_CUES = ("complex", "significant", "major")

HIGH_RISK_CUES = ("replace", "overhaul", "critical")
LOW_RISK_CUES = ("add", "enhance")

HIGH_PERFORMER_RATING = 80
HIGH_PERFORMER_BONUS = 10
NAME_MAX_CHARS = 100


@dataclass(frozen=True, slots=True)
class ImprovementOpportunity:
    """A scored candidate improvement. In-memory only."""

    type: OpportunityType
    name: str
    description: str
    relevance: int
    estimated_benefit: str
    implementation_cost: Level
    risk_level: Level


def _contains_any(text: str, cues: Tuple[str, ...]) -> bool:
    return any(cue in text for cue in cues)


def classify_opportunity_type(recommendation: str) -> OpportunityType:
    lower = recommendation.lower()
    for opportunity_type, keywords in TYPE_KEYWORDS:
        if _contains_any(lower, keywords):
            return opportunity_type
    return OpportunityType.BEST_PRACTICE


def estimate_cost(recommendation: str) -> Level:
    """Simplicity cues are checked before scale cues; neither means medium."""
    lower = recommendation.lower()
    if _contains_any(lower, LOW_COST_CUES):
        return Level.LOW
    if _contains_any(lower, HIGH_COST_CUES):
        return Level.HIGH
    return Level.MEDIUM


def estimate_risk(recommendation: str, opportunity_type: OpportunityType) -> Level:
    """Destructive cues win, then best practices and additive cues, else medium."""
    lower = recommendation.lower()
    if _contains_any(lower, HIGH_RISK_CUES):
        return Level.HIGH
    if opportunity_type == OpportunityType.BEST_PRACTICE or _contains_any(lower, LOW_RISK_CUES):
        return Level.LOW
    return Level.MEDIUM


def score_relevance(confidence: int, performance_rating: float) -> int:
    bonus = HIGH_PERFORMER_BONUS if performance_rating > HIGH_PERFORMER_RATING else 0
    return min(100, int(confidence) + bonus)


def evaluate_recommendation(
    recommendation: str,
    confidence: int,
    performance_rating: float,
    specialization: str,
) -> ImprovementOpportunity:
    """Score one research recommendation.

    Args:
        recommendation: Recommendation text from a research result
        confidence: Confidence of the research result it came from
        performance_rating: Current rating of the researching agent
        specialization: The agent's specialization, used in the benefit text
    """
    opportunity_type = classify_opportunity_type(recommendation)
    return ImprovementOpportunity(
        type=opportunity_type,
        name=recommendation[:NAME_MAX_CHARS],
        description=recommendation,
        relevance=score_relevance(confidence, performance_rating),
        estimated_benefit=f"Improve {specialization} capabilities",
        implementation_cost=estimate_cost(recommendation),
        risk_level=estimate_risk(recommendation, opportunity_type),
    )
