"""Learning and research cycle.

Import LearningCycle from ``agentforge.learning.research``.
"""

from .opportunities import (
    ImprovementOpportunity,
    OpportunityType,
    classify_opportunity_type,
    estimate_cost,
    estimate_risk,
    evaluate_recommendation,
)

__all__ = [
    "ImprovementOpportunity",
    "OpportunityType",
    "classify_opportunity_type",
    "estimate_cost",
    "estimate_risk",
    "evaluate_recommendation",
]
