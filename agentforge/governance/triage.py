"""Improvement triage - turns eligible opportunities into pending requests.

Triage only ever creates requests in the ``pending`` state. Approval and
rejection belong to a human reviewer (see CapabilityStore.approve_request and
CapabilityStore.reject_request).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from agentforge.learning.opportunities import ImprovementOpportunity, OpportunityType
from agentforge.persistence.capability_store import CapabilityStore
from agentforge.persistence.records import ImprovementRequest, Level, RequestStatus, RequestType
from agentforge.utils.logging_utils import log_triage_decision
from agentforge.utils.time_utils import utc_now

LOGGER = logging.getLogger(__name__)

MIN_RELEVANCE = 70
HIGH_PRIORITY_RELEVANCE = 85

REQUEST_TYPE_FOR_OPPORTUNITY: Dict[OpportunityType, RequestType] = {
    OpportunityType.API: RequestType.NEW_API,
    OpportunityType.TOOL: RequestType.NEW_TOOL,
    OpportunityType.SKILL: RequestType.NEW_SKILL,
    OpportunityType.FRAMEWORK: RequestType.PROCESS_CHANGE,
    OpportunityType.BEST_PRACTICE: RequestType.PROCESS_CHANGE,
}

COST_ESTIMATE: Dict[Level, int] = {
    Level.LOW: 5,
    Level.MEDIUM: 15,
    Level.HIGH: 30,
}


def is_eligible(opportunity: ImprovementOpportunity) -> bool:
    """relevance >= 70 and risk is not high."""
    return opportunity.relevance >= MIN_RELEVANCE and Level(opportunity.risk_level) != Level.HIGH


def priority_for(relevance: int) -> Level:
    if relevance >= HIGH_PRIORITY_RELEVANCE:
        return Level.HIGH
    if relevance >= MIN_RELEVANCE:
        return Level.MEDIUM
    return Level.LOW


def build_request(agent_id: str, opportunity: ImprovementOpportunity) -> ImprovementRequest:
    return ImprovementRequest(
        agent_id=agent_id,
        request_type=REQUEST_TYPE_FOR_OPPORTUNITY[OpportunityType(opportunity.type)],
        title=opportunity.name,
        description=opportunity.description,
        benefit_estimate=opportunity.estimated_benefit,
        cost_estimate=COST_ESTIMATE[Level(opportunity.implementation_cost)],
        risk_level=Level(opportunity.risk_level),
        priority=priority_for(opportunity.relevance),
        status=RequestStatus.PENDING,
    )


class ImprovementTriage:
    """Eligibility gate between research opportunities and the review queue."""

    def __init__(
        self,
        store: CapabilityStore,
        reproposal_cooldown_days: int = 30,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.reproposal_cooldown_days = reproposal_cooldown_days
        self._clock = clock or utc_now

    def _suppression_reason(self, agent_id: str, description: str) -> Optional[str]:
        if self.store.has_recent_request(agent_id, description, [RequestStatus.PENDING]):
            return "identical request already pending"
        if self.reproposal_cooldown_days > 0:
            since = self._clock() - timedelta(days=self.reproposal_cooldown_days)
            if self.store.has_recent_request(agent_id, description, [RequestStatus.REJECTED], since=since):
                return f"identical request rejected within {self.reproposal_cooldown_days} days"
        return None

    def propose_if_eligible(self, agent_id: str, opportunity: ImprovementOpportunity) -> bool:
        """Create a pending improvement request when the opportunity qualifies.

        Returns:
            True if a request was created
        """
        summary = {
            "name": opportunity.name,
            "relevance": opportunity.relevance,
            "risk_level": Level(opportunity.risk_level).value,
        }

        if not is_eligible(opportunity):
            log_triage_decision(LOGGER, agent_id, summary, created=False, reason="not eligible")
            return False

        reason = self._suppression_reason(agent_id, opportunity.description)
        if reason:
            log_triage_decision(LOGGER, agent_id, summary, created=False, reason=reason)
            return False

        self.store.create_improvement_request(build_request(agent_id, opportunity))
        log_triage_decision(LOGGER, agent_id, summary, created=True)
        return True
